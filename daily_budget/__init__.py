"""Top-level package for the daily budget tracker.

The primary modules are:

* ``models`` - record types and input validation
* ``db`` - the sqlite persistence gateway
* ``allocation`` - daily allocation and month budget resolution
* ``aggregation`` - grouping, totals and the statistics report
* ``export`` - CSV export of expenses
* ``dashboard`` - a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run daily_budget/dashboard.py
```
"""

from . import models  # noqa: F401  # re-exported for convenience
from . import db  # noqa: F401
from . import allocation  # noqa: F401
from . import aggregation  # noqa: F401
from . import export  # noqa: F401
# Import dashboard lazily.  Streamlit may not be installed in all
# environments (e.g. during unit testing).  If the import fails,
# assign ``None``.
try:
    from . import dashboard  # type: ignore  # noqa: F401
except ModuleNotFoundError:
    dashboard = None  # type: ignore


__all__ = ["models", "db", "allocation", "aggregation", "export", "dashboard"]
