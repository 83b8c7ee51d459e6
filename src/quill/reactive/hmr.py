"""Hot reload — the browser half of the live-reload pipeline.

Themes embed the snippet with ``{% include "hot_reload_script" %}``.  It
connects to the SSE endpoint and reloads the page on every ``reload``
message.  When the connection drops (server restart) it retries with a
delay and reloads once it is back.
"""

from __future__ import annotations

EVENTS_ENDPOINT = "/events"

HOT_RELOAD_PARTIAL = "hot_reload_script"

# Kept free of Jinja delimiters: it is registered as a template verbatim.
HOT_RELOAD_SCRIPT = """\
<script data-quill-reload>
(function() {
  var lost = false;
  function connect() {
    var src = new EventSource('%(endpoint)s');
    src.onopen = function() {
      if (lost) { location.reload(); }
    };
    src.onmessage = function(e) {
      if (e.data === 'reload') { location.reload(); }
    };
    src.onerror = function() {
      lost = true;
      src.close();
      setTimeout(connect, 2000);
    };
  }
  connect();
})();
</script>
""" % {"endpoint": EVENTS_ENDPOINT}
