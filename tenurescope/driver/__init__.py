"""DocumentView implementations.

StaticDocumentView serves saved HTML snapshots; PlaywrightDocumentView wraps
a live browser page and snapshots its rendered DOM on every read.
"""

from tenurescope.driver.playwright_view import (
    PlaywrightDocumentView,
)
from tenurescope.driver.static_view import StaticDocumentView

__all__ = ["PlaywrightDocumentView", "StaticDocumentView"]
