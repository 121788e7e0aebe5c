"""
The JavaScript snippet sites embed via <script src="/analytics.js">.
"""
import json

TRACKING_SCRIPT = """(function() {
    const Analytics = {
        endpoint: '{{ANALYTICS_ORIGIN}}/track',
        trackingId: {{TRACKING_ID}},

        init() {
            this.sessionId = this.getSessionId();
            this.trackPageView();
        },

        getSessionId() {
            let sessionId = sessionStorage.getItem('analytics_session');
            if (!sessionId) {
                sessionId = Date.now().toString(36) + Math.random().toString(36).substr(2, 5);
                sessionStorage.setItem('analytics_session', sessionId);
            }
            return sessionId;
        },

        trackPageView() {
            const data = {
                tracking_id: this.trackingId,
                session_id: this.sessionId,
                page_url: window.location.href,
                page_title: document.title,
                referrer: document.referrer,
                user_agent: navigator.userAgent,
                timestamp: new Date().toISOString()
            };

            if (navigator.sendBeacon) {
                const blob = new Blob([JSON.stringify(data)], {
                    type: 'application/json'
                });
                navigator.sendBeacon(this.endpoint, blob);
            } else {
                fetch(this.endpoint, {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    body: JSON.stringify(data),
                    keepalive: true
                }).catch(() => {});
            }
        }
    };

    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', () => Analytics.init());
    } else {
        Analytics.init();
    }
})();
"""


def render_tracking_script(tracking_id: str, origin: str) -> str:
    """
    Fill in the two placeholders. The id goes in as a JSON string literal so
    quotes in it cannot break out of the script.
    """
    origin = origin.rstrip("/").replace("\\", "").replace("'", "")
    return (
        TRACKING_SCRIPT
        .replace("{{TRACKING_ID}}", json.dumps(tracking_id), 1)
        .replace("{{ANALYTICS_ORIGIN}}", origin, 1)
    )
