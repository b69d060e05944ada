"""Client side of a session: the reconciler, a minimal element tree and a headless client.

The browser equivalent of ``Reconciler`` ships as ``static/iwgui.js``.
"""

from iwgui.client.dom import Element
from iwgui.client.headless import HeadlessClient
from iwgui.client.reconciler import MirrorEntry, Reconciler

__all__ = ["Element", "HeadlessClient", "MirrorEntry", "Reconciler"]
