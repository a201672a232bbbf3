"""
Debt types, interest schemes and the keyword lists used to recognize debt accounts.
Keyword matching is always a case-insensitive substring test.
"""

# Debt types
CREDIT_CARD = "credit_card"
AUTO_LOAN = "auto_loan"
STUDENT_LOAN = "student_loan"
MORTGAGE = "mortgage"
PERSONAL_LOAN = "personal_loan"
LINE_OF_CREDIT = "line_of_credit"

DEBT_TYPES = (CREDIT_CARD, AUTO_LOAN, STUDENT_LOAN, MORTGAGE, PERSONAL_LOAN, LINE_OF_CREDIT)

# Interest schemes; the scheme alone determines the formula
SIMPLE = "simple"
COMPOUND_MONTHLY = "compound_monthly"
COMPOUND_DAILY = "compound_daily"
COMPOUND_ANNUALLY = "compound_annually"

INTEREST_SCHEMES = (SIMPLE, COMPOUND_MONTHLY, COMPOUND_DAILY, COMPOUND_ANNUALLY)
DEFAULT_INTEREST_SCHEME = COMPOUND_MONTHLY

# Compounding frequency is stored for display only
COMPOUNDING_FREQUENCIES = ("daily", "monthly", "quarterly", "annually")
DEFAULT_COMPOUNDING_FREQUENCY = "monthly"

# Account names
CREDIT_CARD_KEYWORDS = [
    "credit card",
    "visa",
    "mastercard",
    "discover",
    "amex",
    "american express",
]

DEBT_NAME_KEYWORDS = CREDIT_CARD_KEYWORDS + [
    "loan",
    "mortgage",
    "student",
    "auto",
    "car payment",
    "debt",
    "line of credit",
    "loc",
    "heloc",
]

MORTGAGE_KEYWORDS = ["mortgage", "home loan"]
AUTO_LOAN_KEYWORDS = ["auto", "car", "vehicle"]
STUDENT_LOAN_KEYWORDS = ["student", "education", "tuition"]
LINE_OF_CREDIT_KEYWORDS = ["line of credit", "loc", "heloc"]

# Payee names / transaction notes
INTEREST_KEYWORDS = [
    "interest",
    "finance charge",
    "apr",
    "interest charge",
    "monthly interest",
]

# Category names
DEBT_CATEGORY_KEYWORDS = [
    "debt",
    "loan",
    "mortgage",
    "credit card",
    "interest",
]

# Rule plumbing shared with the external schedule executor
ACCOUNT_CONDITION_FIELD = "acct"
INTEREST_CONFIG_FIELD = "debt_interest_config"
