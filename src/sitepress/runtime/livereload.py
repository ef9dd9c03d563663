"""Live-reload push channel.

Delivery is best effort and at most once: an event goes to the sessions
connected at the moment it is broadcast, is never queued for sessions that
connect later, and a session whose send fails is simply dropped.
"""

import logging
from typing import Set

from starlette.websockets import WebSocket

from sitepress.runtime.reload import ReloadEvent

logger = logging.getLogger(__name__)

RELOAD_PATH = "/_sitepress/ws"

CLIENT_SCRIPT = """
<script>
(function () {
  var scheme = location.protocol === "https:" ? "wss://" : "ws://";
  var socket = new WebSocket(scheme + location.host + "%(path)s");

  socket.onopen = function () { console.log("[sitepress] live reload connected"); };
  socket.onclose = function () { console.log("[sitepress] live reload disconnected"); };

  socket.onmessage = function (message) {
    if (message.data === "css-reload") {
      var links = document.querySelectorAll('link[rel="stylesheet"]');
      links.forEach(function (link) {
        var fresh = link.cloneNode();
        fresh.href = link.href.split("?")[0] + "?t=" + Date.now();
        link.parentNode.insertBefore(fresh, link.nextSibling);
        setTimeout(function () { link.remove(); }, 100);
      });
    } else if (message.data === "js-reload" || message.data === "page-reload") {
      window.location.reload();
    }
  };
})();
</script>
""" % {"path": RELOAD_PATH}


def inject_reload_script(html: str) -> str:
    """Insert the client script before the closing body tag, if there is one."""
    marker = "</body>"
    index = html.rfind(marker)
    if index == -1:
        return html
    return html[:index] + CLIENT_SCRIPT + html[index:]


class ReloadBroadcaster:
    """Tracks connected browser sessions and pushes reload events to them."""

    def __init__(self) -> None:
        self.active_connections: Set[WebSocket] = set()

    async def handle(self, websocket: WebSocket) -> None:
        """Serve one browser session until it goes away."""
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info("Client connected for hot reload")

        try:
            # Clients never send anything meaningful, text or binary; wait for close
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            self.active_connections.discard(websocket)
            logger.info("Client disconnected")

    async def broadcast(self, event: ReloadEvent) -> int:
        """Send event to every connected session; returns how many got it."""
        if not self.active_connections:
            logger.debug("No clients connected, dropping %s", event.value)
            return 0

        delivered = 0
        for connection in list(self.active_connections):
            try:
                await connection.send_text(event.value)
                delivered += 1
            except Exception as e:
                logger.debug("Dropping client after failed send: %s", e)
                self.active_connections.discard(connection)

        return delivered
