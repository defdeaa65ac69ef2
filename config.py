# config.py
import os

# ======= Search strategy =======
# auto | backtracking | anchored | cp_sat
STRATEGY   = os.getenv("PP_STRATEGY", "auto").strip().lower() or "auto"
QUICK_FILL = int(os.getenv("PP_QUICK_FILL", "1")) != 0

# ======= Search caps =======
# The positional search gives up after NODE_LIMIT nodes in ``auto`` mode and
# hands the region to the anchored rescue search.  <= 0 means uncapped.
NODE_LIMIT  = int(os.getenv("PP_NODE_LIMIT", "5000"))
MAX_SECONDS = float(os.getenv("PP_MAX_SECONDS", "0"))

# ======= Region fan-out =======
WORKERS        = int(os.getenv("PP_WORKERS", "1"))
REGION_SECONDS = float(os.getenv("PP_REGION_SECONDS", "0"))

# ======= CP-SAT knobs =======
CP_WORKERS    = int(os.getenv("PP_CP_WORKERS", "1"))
CP_SECONDS    = float(os.getenv("PP_CP_SECONDS", "60"))
MAX_MEMORY_MB = int(os.getenv("PP_MAX_MEMORY_MB", "2048"))
RANDOM_SEED   = int(os.getenv("PP_RANDOM_SEED", "0"))

# ======= Output names =======
REPORT_OUT  = os.getenv("PP_REPORT_OUT", "report.txt")
LAYOUT_HTML = os.getenv("PP_LAYOUT_HTML", "layout_view.html")
ATTEMPT_LOG = os.getenv("PP_ATTEMPT_LOG", os.path.join("logs", "packer_attempts.log"))

STRATEGIES = ("auto", "backtracking", "anchored", "cp_sat")


class CFG:
    STRATEGY   = STRATEGY
    QUICK_FILL = QUICK_FILL

    NODE_LIMIT  = NODE_LIMIT
    MAX_SECONDS = MAX_SECONDS

    WORKERS        = WORKERS
    REGION_SECONDS = REGION_SECONDS

    CP_WORKERS    = CP_WORKERS
    CP_SECONDS    = CP_SECONDS
    MAX_MEMORY_MB = MAX_MEMORY_MB
    RANDOM_SEED   = RANDOM_SEED

    REPORT_OUT  = REPORT_OUT
    LAYOUT_HTML = LAYOUT_HTML
    ATTEMPT_LOG = ATTEMPT_LOG


__all__ = ["CFG", "STRATEGIES"]
