"""fuel-price-sheets — Normalize weekly fuel price workbooks and refill the comparison template."""

__version__ = "0.3.0"

SURVEY_WINDOW: int = 5
SCHEMA_VERSION: int = 2
LEGACY_SCHEMA_VERSION: int = 1
STATE_KEY: str = "gas_price_state"
