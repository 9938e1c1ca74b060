"""Curated XBRL concept lists and metric-category keywords.

Layer 1: Statement lists   (which us-gaap concepts each view shows)
Layer 2: Category keywords (humanized name → quarterly-view group)

Every list here is an immutable tuple.  Selection policies are built from
them per call (see extractor.py); nothing mutates them at runtime.
"""

from __future__ import annotations

from typing import NamedTuple


# ═══════════════════════════════════════════════════════════════════════════
#  Key metrics: the default dashboard view
# ═══════════════════════════════════════════════════════════════════════════

KEY_METRICS: tuple[str, ...] = (
    "Revenues",
    "RevenueFromContractWithCustomerExcludingAssessedTax",
    "GrossProfit",
    "OperatingIncomeLoss",
    "NetIncomeLoss",
    "EarningsPerShareBasic",
    "EarningsPerShareDiluted",
    "Assets",
    "AssetsCurrent",
    "Liabilities",
    "LiabilitiesCurrent",
    "StockholdersEquity",
    "CashAndCashEquivalentsAtCarryingValue",
    "OperatingCashFlowsFromOperatingActivities",
)

# Offline extract job: key metrics plus the common supporting concepts
EXTRACT_METRICS: tuple[str, ...] = KEY_METRICS + (
    "OperatingExpenses",
    "ResearchAndDevelopmentExpense",
    "SellingGeneralAndAdministrativeExpense",
    "InterestExpense",
    "IncomeTaxExpenseBenefit",
    "DepreciationDepletionAndAmortization",
    "PropertyPlantAndEquipmentNet",
    "Goodwill",
    "LongTermDebt",
    "ShortTermInvestments",
    "AccountsReceivableNetCurrent",
    "InventoryNet",
    "AccountsPayableCurrent",
    "DividendsCommonStockCash",
    "WeightedAverageNumberOfSharesOutstandingBasic",
    "WeightedAverageNumberOfDilutedSharesOutstanding",
)

# dei concepts kept as a latest-value snapshot (values may be strings)
DEI_SNAPSHOT_CONCEPTS: tuple[str, ...] = (
    "EntityRegistrantName",
    "EntityCentralIndexKey",
    "EntityFilerCategory",
    "EntityPublicFloat",
    "EntityCommonStockSharesOutstanding",
    "DocumentPeriodEndDate",
    "DocumentFiscalYearEnd",
    "DocumentType",
)


# ═══════════════════════════════════════════════════════════════════════════
#  Income statement
# ═══════════════════════════════════════════════════════════════════════════

INCOME_METRICS: tuple[str, ...] = (
    "Revenues",
    "RevenueFromContractWithCustomerExcludingAssessedTax",
    "CostOfRevenue",
    "CostOfGoodsAndServicesSold",
    "GrossProfit",
    "OperatingExpenses",
    "ResearchAndDevelopmentExpense",
    "SellingGeneralAndAdministrativeExpense",
    "OperatingIncomeLoss",
    "InterestExpense",
    "InterestIncome",
    "OtherNonoperatingIncomeExpense",
    "IncomeLossFromContinuingOperationsBeforeIncomeTaxesMinorityInterestAndIncomeLossFromEquityMethodInvestments",
    "IncomeTaxExpenseBenefit",
    "NetIncomeLoss",
    "NetIncomeLossAttributableToNoncontrollingInterest",
    "NetIncomeLossAttributableToParent",
    "EarningsPerShareBasic",
    "EarningsPerShareDiluted",
    "WeightedAverageNumberOfSharesOutstandingBasic",
    "WeightedAverageNumberOfDilutedSharesOutstanding",
)


# ═══════════════════════════════════════════════════════════════════════════
#  Balance sheet
# ═══════════════════════════════════════════════════════════════════════════

BALANCE_METRICS: tuple[str, ...] = (
    "Assets",
    "AssetsCurrent",
    "CashAndCashEquivalentsAtCarryingValue",
    "MarketableSecurities",
    "AccountsReceivableNet",
    "Inventory",
    "PrepaidExpensesAndOtherAssets",
    "PropertyPlantAndEquipmentNet",
    "Goodwill",
    "IntangibleAssetsNet",
    "Investments",
    "OtherAssets",
    "Liabilities",
    "LiabilitiesCurrent",
    "AccountsPayableCurrent",
    "AccruedLiabilitiesCurrent",
    "ShortTermDebt",
    "LongTermDebt",
    "DeferredRevenue",
    "OtherLiabilities",
    "StockholdersEquity",
    "CommonStockValue",
    "RetainedEarningsAccumulatedDeficit",
    "AccumulatedOtherComprehensiveIncomeLoss",
    "TreasuryStockValue",
)


# ═══════════════════════════════════════════════════════════════════════════
#  Cash flow statement
# ═══════════════════════════════════════════════════════════════════════════

CASHFLOW_METRICS: tuple[str, ...] = (
    "NetCashProvidedByUsedInOperatingActivities",
    "NetIncomeLoss",
    "DepreciationDepletionAndAmortization",
    "StockBasedCompensation",
    "DeferredIncomeTaxExpenseBenefit",
    "ChangesInOperatingAssetsAndLiabilities",
    "IncreaseDecreaseInAccountsReceivable",
    "IncreaseDecreaseInInventories",
    "IncreaseDecreaseInAccountsPayable",
    "NetCashProvidedByUsedInInvestingActivities",
    "PaymentsToAcquirePropertyPlantAndEquipment",
    "PaymentsToAcquireInvestments",
    "ProceedsFromSaleOfInvestments",
    "PaymentsToAcquireBusinessesNetOfCashAcquired",
    "NetCashProvidedByUsedInFinancingActivities",
    "PaymentsOfDividends",
    "PaymentsForRepurchaseOfCommonStock",
    "ProceedsFromIssuanceOfCommonStock",
    "RepaymentsOfDebt",
    "ProceedsFromDebt",
    "CashCashEquivalentsRestrictedCashAndRestrictedCashEquivalentsBeginningOfPeriod",
    "CashCashEquivalentsRestrictedCashAndRestrictedCashEquivalentsEndOfPeriod",
)


# ═══════════════════════════════════════════════════════════════════════════
#  Forward estimates: concepts the projection reads
# ═══════════════════════════════════════════════════════════════════════════

REVENUE_CONCEPTS: tuple[str, ...] = (
    "Revenues",
    "RevenueFromContractWithCustomerExcludingAssessedTax",
)
NET_INCOME_CONCEPT = "NetIncomeLoss"
SHARES_CONCEPT = "WeightedAverageNumberOfSharesOutstandingBasic"
EPS_CONCEPT = "EarningsPerShareBasic"


# ═══════════════════════════════════════════════════════════════════════════
#  Quarterly-view categories
#  Matched against the lower-cased humanized name; first rule wins, so the
#  specific groups come before the broad keywords: "Deferred Revenue" is a
#  liability, "Accumulated Other Comprehensive Income" is equity, and
#  "cash" alone only means the balance-sheet line.
# ═══════════════════════════════════════════════════════════════════════════

class CategoryRule(NamedTuple):
    category: str
    keywords: tuple[str, ...]


REVENUE_INCOME = "Revenue & Income"
EXPENSES = "Expenses"
ASSETS = "Assets"
LIABILITIES = "Liabilities"
EQUITY = "Equity"
CASH_FLOW = "Cash Flow"
OTHER = "Other"

CATEGORY_ORDER: tuple[str, ...] = (
    REVENUE_INCOME, EXPENSES, ASSETS, LIABILITIES, EQUITY, CASH_FLOW, OTHER,
)

CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(CASH_FLOW, (
        "cash provided", "cash flow", "payments", "proceeds", "repayments",
        "increase decrease",
    )),
    CategoryRule(EXPENSES, (
        "expense", "cost", "depreciation", "amortization", "compensation",
    )),
    CategoryRule(LIABILITIES, (
        "liabilit", "debt", "payable", "deferred revenue", "accrued",
    )),
    CategoryRule(EQUITY, (
        "stockholders equity", "shareholders equity", "common stock",
        "preferred stock", "retained earnings", "comprehensive", "treasury",
        "additional paid in capital",
    )),
    CategoryRule(REVENUE_INCOME, (
        "revenue", "income", "earnings", "profit", "sales",
    )),
    CategoryRule(ASSETS, (
        "asset", "cash", "receivable", "inventor", "property", "goodwill",
        "intangible", "investment", "securities", "prepaid",
    )),
)
