from utils.db import mongo
from utils.security import utcnow

# Audit actions written by the approval workflow
APPROVE = "APPROVE"
REJECT = "REJECT"
BULK_APPROVE = "BULK_APPROVE"
DEACTIVATE = "DEACTIVATE"


class Log:

    @staticmethod
    def collection():
        return mongo.db.logs

    def __init__(self, action, collection_name, performed_by, document_id,
                 changes=None, timestamp=None):
        self.timestamp = timestamp or utcnow()
        self.action = action
        self.collection_name = collection_name
        self.performed_by = performed_by
        self.document_id = document_id
        self.changes = changes

    def to_dict(self):
        return {
            "timestamp": self.timestamp,
            "action": self.action,
            "collection": self.collection_name,
            "performed_by": self.performed_by,
            "document_id": self.document_id,
            "changes": self.changes
        }

    def save(self):
        return self.collection().insert_one(self.to_dict())

    @staticmethod
    def for_document(document_id):
        return list(Log.collection().find({"document_id": document_id}).sort("timestamp", 1))
