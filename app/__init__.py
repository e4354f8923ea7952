"""School administration backend: notification dispatch service."""
