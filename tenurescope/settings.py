"""User-facing analysis settings.

Settings are owned by a collaborator (the store, or the CLI) and passed to
the analyzer explicitly; nothing in the pipeline reads them from a global.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from tenurescope.extractor import ExtractionStrategy

DEFAULT_MAX_RECORDS = 50


class AnalyzerSettings(BaseModel):
    """Settings for one analysis run.

    Attributes:
        max_records: Target number of member cards per crawl.
        include_past_records: Also crawl the past-members view.
        strategy: Where start dates are read from (card caption or profile).
    """

    max_records: int = Field(default=DEFAULT_MAX_RECORDS, ge=1, le=1000)
    include_past_records: bool = True
    strategy: ExtractionStrategy = ExtractionStrategy.CARD
