"""
# Database Package

Persistence layer for EventHub, built on **Motor** (async MongoDB driver).

- **`manager`**: the `DatabaseManager` class and the `db_manager` singleton shared by
  every service. The connection is established lazily in the application lifespan
  via `db_manager.connect()`.

```python
from eventhub.database import db_manager

await db_manager.connect()
events = db_manager.get_collection("events")
```
"""

from eventhub.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]
