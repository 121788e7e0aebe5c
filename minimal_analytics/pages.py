"""
Inline HTML templates (rendered with Flask's render_template_string) and the
sparkline helper used by the dashboard.
"""


# -----------------------------------------------------------------------------
# Sparkline builder (inline SVG chart)
# -----------------------------------------------------------------------------
def build_sparkline(points, width=320, height=60, stroke="#38bdf8"):
    """
    Tiny inline SVG sparkline.
    points: list[(day_string, views_int)], ascending by day.
    """
    empty = (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
        f'fill="none" stroke="{stroke}" stroke-width="2"></svg>'
    )
    if not points:
        return {"svg": empty, "last_count": 0}

    counts = [p[1] for p in points]
    max_c = max(counts)
    min_c = min(counts)
    span_c = max_c - min_c or 1

    n = len(points)
    if n == 1:
        xs = [width / 2]
    else:
        xs = [i * (width / (n - 1)) for i in range(n)]
    ys = [height - ((c - min_c) / span_c) * (height - 4) - 2 for c in counts]

    d_attr = " ".join(
        f"{'M' if i == 0 else 'L'}{x:.1f},{y:.1f}" for i, (x, y) in enumerate(zip(xs, ys))
    )
    svg = (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
        f'fill="none" stroke="{stroke}" stroke-width="2" stroke-linecap="round" '
        f'shape-rendering="geometricPrecision"><path d="{d_attr}" /></svg>'
    )
    return {"svg": svg, "last_count": counts[-1]}


STYLE = """
:root {
  --bg-main:#0f172a;
  --bg-card:#1e293b;
  --text-main:#f8fafc;
  --text-dim:#94a3b8;
  --text-dimmer:#64748b;
  --border-card:#334155;
  --border-head:#475569;
  --accent:#38bdf8;
  --radius-lg:1rem;
  --shadow-card:0 20px 40px rgb(0 0 0 / .6);
  --font:system-ui,-apple-system,BlinkMacSystemFont,"Segoe UI",Roboto,sans-serif;
}
*{box-sizing:border-box;margin:0;padding:0}
body{font-family:var(--font);background:var(--bg-main);color:var(--text-main);padding:2rem;line-height:1.4}
a{color:var(--accent)}
header{display:flex;flex-wrap:wrap;gap:.5rem 1.5rem;justify-content:space-between;align-items:flex-end;margin-bottom:2rem}
.title{font-size:1.2rem;font-weight:600}
.subtitle{font-size:.8rem;color:var(--text-dimmer)}
.sites a{font-size:.8rem;margin-left:.75rem;text-decoration:none}
.sites a.active{color:var(--text-main);font-weight:600}
.grid-cards{display:grid;grid-template-columns:repeat(auto-fit,minmax(min(180px,100%),1fr));gap:1rem;margin-bottom:2rem}
.metric-card,.card{background:var(--bg-card);border-radius:var(--radius-lg);box-shadow:var(--shadow-card);padding:1rem 1.25rem;min-width:0}
.metric-head{font-size:.7rem;color:var(--text-dim);display:flex;justify-content:space-between;margin-bottom:.5rem}
.metric-value{font-size:1.4rem;font-weight:600}
.metric-foot{font-size:.7rem;color:var(--text-dimmer);margin-top:.4rem}
.metric-accent{color:var(--accent);font-weight:600}
.sections{display:grid;gap:1.5rem;margin-bottom:2rem}
@media(min-width:1100px){.sections{grid-template-columns:repeat(2,minmax(0,1fr))}}
.card-title{font-weight:600;margin-bottom:.75rem}
table{width:100%;border-collapse:collapse;font-size:.8rem}
th{text-align:left;color:#e2e8f0;border-bottom:1px solid var(--border-head);padding:.5rem .25rem;font-size:.7rem;text-transform:uppercase}
td{border-bottom:1px solid var(--border-card);padding:.5rem .25rem;color:#cbd5e1;word-break:break-word}
td.num,th.num{text-align:right;font-variant-numeric:tabular-nums;white-space:nowrap}
pre{background:#0b1220;border-radius:.5rem;padding:.75rem;font-size:.75rem;overflow-x:auto;color:#cbd5e1}
"""

DASHBOARD_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<meta name="viewport" content="width=device-width,initial-scale=1"/>
<title>Minimal Analytics · {{ website.name }}</title>
<style>{{ style }}</style>
</head>
<body>

<header>
  <div>
    <div class="title">{{ website.name }} · last {{ window_days }} days</div>
    <div class="subtitle">{{ website.domain }} · tracking id <code>{{ website.id }}</code></div>
  </div>
  <nav class="sites">
    {% for site in websites %}
    <a href="/?site={{ site.id | urlencode }}" class="{{ 'active' if site.id == website.id else '' }}">{{ site.name or site.id }}</a>
    {% endfor %}
  </nav>
</header>

<section class="grid-cards">
  <div class="metric-card">
    <div class="metric-head"><span>Pageviews</span><span class="metric-accent">{{ window_days }}d</span></div>
    <div class="metric-value">{{ stats.total_views }}</div>
  </div>
  <div class="metric-card">
    <div class="metric-head"><span>Unique sessions</span><span class="metric-accent">{{ window_days }}d</span></div>
    <div class="metric-value">{{ stats.unique_sessions }}</div>
    <div class="metric-foot">One per browser tab session.</div>
  </div>
  <div class="metric-card">
    <div class="metric-head"><span>Days with traffic</span><span class="metric-accent">{{ window_days }}d</span></div>
    <div class="metric-value">{{ stats.days_with_traffic }}</div>
  </div>
  <div class="metric-card">
    <div>{{ spark_svg | safe }}</div>
    <div class="metric-foot">Pageviews / day · latest {{ spark_last }}</div>
  </div>
</section>

<section class="sections">
  <div class="card">
    <div class="card-title">Top pages</div>
    <table>
      <tr><th>Page</th><th class="num">Views</th></tr>
      {% for url, views in stats.top_pages %}
      <tr><td>{{ url }}</td><td class="num">{{ views }}</td></tr>
      {% else %}
      <tr><td colspan="2">No page views yet.</td></tr>
      {% endfor %}
    </table>
  </div>

  <div class="card">
    <div class="card-title">Browsers</div>
    <table>
      <tr><th>Browser</th><th class="num">Visits</th></tr>
      {% for browser, count in stats.browsers %}
      <tr><td>{{ browser }}</td><td class="num">{{ count }}</td></tr>
      {% else %}
      <tr><td colspan="2">No page views yet.</td></tr>
      {% endfor %}
    </table>
  </div>
</section>

<section class="card">
  <div class="card-title">Embed</div>
  <pre>&lt;script src="{{ origin }}/analytics.js" defer&gt;&lt;/script&gt;</pre>
  <div class="metric-foot">Raw numbers: <a href="/stats/{{ website.id | urlencode }}">/stats/{{ website.id }}</a></div>
</section>

</body>
</html>
"""

TEST_PAGE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>{{ title }}</title>
<style>{{ style }}</style>
<script src="/analytics.js" defer></script>
</head>
<body>
  <header><div class="title">{{ title }}</div></header>
  <section class="card">
    <p>This page loads the tracking script; every visit shows up on the dashboard.</p>
    <p style="margin-top:1rem">
      <a href="/test">Test page 1</a> · <a href="/test2">Test page 2</a> · <a href="/">Dashboard</a>
    </p>
  </section>
</body>
</html>
"""
