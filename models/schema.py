# Centralized collection names to prevent drift.
# These collections are owned by the document app; this service only reads them,
# except delivery_logs, which the dispatcher writes.

COL_SYSTEM = "system"

COL_TEAMS = "teams"
COL_USERS = "users"
COL_DOCUMENTS = "documents"
COL_COLLECTIONS = "collections"
COL_NOTIFICATION_SETTINGS = "notification_settings"
COL_VIEWS = "views"

# Access grants: one doc per (collection, user) or (collection, group).
COL_COLLECTION_USERS = "collection_users"
COL_COLLECTION_GROUPS = "collection_groups"
COL_GROUP_USERS = "group_users"

COL_DELIVERY_LOGS = "delivery_logs"

# Subscription event kinds, as stored on notification_settings.event
EVENT_DOCUMENTS_PUBLISH = "documents.publish"
EVENT_DOCUMENTS_UPDATE = "documents.update"
EVENT_COLLECTIONS_CREATE = "collections.create"
