# teamboard/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Startup housekeeping (stale presence reset)
- db: Database configuration and connection management
- errors: Error taxonomy rendered as {"success": false, "error": ...}
- permissions: Authorization predicates over teams, projects, tasks, todos, messages
- presence: Online/offline tracking driven by realtime connections
- pubsub: Room-scoped WebSocket event fan-out
- security: Password hashing and bearer tokens
"""
