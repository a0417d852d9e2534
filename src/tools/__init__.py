from tools.detect import bill_cycles  # noqa: F401
from tools.forecast import budget_forecast, work_plan  # noqa: F401
from tools.ledger import accumulated_budget, classify_expenses, suggest_categories  # noqa: F401
