"""Canonical field names shared by providers, rules and the report."""

# Quote
PRICE = "price"

# Valuation multiples
PRICE_TO_EARNINGS = "price_to_earnings"
PRICE_TO_BOOK = "price_to_book"
BOOK_VALUE_PER_SHARE = "book_value_per_share"
EARNINGS_PER_SHARE = "earnings_per_share"

# Dividends
DIVIDEND_YIELD = "dividend_yield"
DIVIDEND_YIELD_5Y_AVG = "dividend_yield_5y_avg"
PAYOUT_RATIO = "payout_ratio"
LAST_DIVIDEND = "last_dividend"
YIELD_1M = "yield_1m"

# Profitability
RETURN_ON_EQUITY = "return_on_equity"
RETURN_ON_INVESTED_CAPITAL = "return_on_invested_capital"
NET_MARGIN = "net_margin"
EBITDA_MARGIN = "ebitda_margin"
EARNINGS_CAGR = "earnings_cagr"

# Financial health
NET_DEBT_TO_EBIT = "net_debt_to_ebit"
NET_DEBT_TO_EBITDA = "net_debt_to_ebitda"
CURRENT_LIQUIDITY = "current_liquidity"

# Analyst coverage
TARGET_PRICE = "target_price"
UPSIDE_POTENTIAL = "upside_potential"
RECOMMENDATION = "recommendation"
ANALYST_COUNT = "analyst_count"
RISK_SCORE = "risk_score"

# Classification (text, never normalized)
SECTOR = "sector"
SEGMENT = "segment"

TEXT_FIELDS = frozenset({RECOMMENDATION, SECTOR, SEGMENT})
