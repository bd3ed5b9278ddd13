"""
Registration approval workflow.

    pending --approve--> approved
    pending --reject---> rejected

Both targets are terminal. Every transition is a single conditional update
on the user document (filter includes ``approval_status: pending``), so two
racing transitions on the same user can never both succeed: the loser finds
no pending document and gets InvalidState.
"""

import logging

from pymongo import ReturnDocument

from models.log import APPROVE, BULK_APPROVE, DEACTIVATE, REJECT, Log
from models.roles import Role
from models.users import APPROVAL_STATUSES, APPROVED, PENDING, REJECTED, User, to_object_id
from utils.errors import InvalidState, NotFound, ValidationError
from utils.security import utcnow

logger = logging.getLogger(__name__)


class ApprovalWorkflow:

    @staticmethod
    def _transition(user_id, changes):
        oid = to_object_id(user_id)
        if oid is None:
            raise NotFound("User not found")

        user = User.collection().find_one_and_update(
            {"_id": oid, "approval_status": PENDING},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        if user is None:
            # Either the id is unknown or someone else already processed it
            if User.collection().find_one({"_id": oid}, {"_id": 1}) is None:
                raise NotFound("User not found")
            raise InvalidState("User has already been processed")
        return user

    @staticmethod
    def approve(user_id, acting_admin_id, notes=None):
        now = utcnow()
        changes = {
            "approval_status": APPROVED,
            "is_active": True,
            "approved_by": to_object_id(acting_admin_id),
            "approved_at": now,
            "updated_at": now
        }
        if notes:
            changes["approval_notes"] = notes

        user = ApprovalWorkflow._transition(user_id, changes)
        Log(APPROVE, "users", changes["approved_by"], user["_id"],
            changes={"approval_status": APPROVED, "notes": notes}, timestamp=now).save()

        logger.info("User %s approved by %s", user["username"], acting_admin_id)
        return user

    @staticmethod
    def reject(user_id, acting_admin_id, reason):
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required")

        now = utcnow()
        changes = {
            "approval_status": REJECTED,
            "is_active": False,
            "rejection_reason": reason,
            "approved_by": to_object_id(acting_admin_id),
            "approved_at": now,
            "updated_at": now
        }

        user = ApprovalWorkflow._transition(user_id, changes)
        Log(REJECT, "users", changes["approved_by"], user["_id"],
            changes={"approval_status": REJECTED, "reason": reason}, timestamp=now).save()

        logger.info("User %s rejected by %s", user["username"], acting_admin_id)
        return user

    @staticmethod
    def bulk_approve(user_ids, acting_admin_id, notes=None):
        """Approve every id that is still pending; returns how many changed.

        Ids that are unknown, malformed or already processed are skipped
        without failing the batch.
        """
        admin_oid = to_object_id(acting_admin_id)
        now = utcnow()
        changes = {
            "approval_status": APPROVED,
            "is_active": True,
            "approved_by": admin_oid,
            "approved_at": now,
            "updated_at": now
        }
        if notes:
            changes["approval_notes"] = notes

        modified = 0
        seen = set()
        for raw_id in user_ids:
            oid = to_object_id(raw_id)
            if oid is None or oid in seen:
                continue
            seen.add(oid)

            # same per-record guard as approve()
            user = User.collection().find_one_and_update(
                {"_id": oid, "approval_status": PENDING},
                {"$set": changes},
                return_document=ReturnDocument.AFTER
            )
            if user is None:
                continue
            modified += 1
            Log(BULK_APPROVE, "users", admin_oid, oid,
                changes={"approval_status": APPROVED, "notes": notes}, timestamp=now).save()

        logger.info("Bulk approval by %s: %d of %d users approved",
                    acting_admin_id, modified, len(user_ids))
        return modified

    @staticmethod
    def _is_last_active_super_user(user):
        role = Role.find_by_id(user.get("role_id"))
        if not role or not role.get("is_super_role"):
            return False
        super_role_ids = [r["_id"] for r in Role.collection().find({"is_super_role": True}, {"_id": 1})]
        others = User.collection().count_documents({
            "_id": {"$ne": user["_id"]},
            "role_id": {"$in": super_role_ids},
            "approval_status": APPROVED,
            "is_active": True
        })
        return others == 0

    @staticmethod
    def deactivate(user_id, acting_admin_id):
        oid = to_object_id(user_id)
        if oid is None:
            raise NotFound("User not found")
        if oid == to_object_id(acting_admin_id):
            raise ValidationError("You cannot deactivate your own account")

        target = User.collection().find_one({"_id": oid}, {"role_id": 1})
        if target is None:
            raise NotFound("User not found")
        if ApprovalWorkflow._is_last_active_super_user(target):
            raise InvalidState("Cannot deactivate the last active administrator")

        now = utcnow()
        user = User.collection().find_one_and_update(
            {"_id": oid, "approval_status": APPROVED, "is_active": True},
            {"$set": {"is_active": False, "updated_at": now}},
            return_document=ReturnDocument.AFTER
        )
        if user is None:
            if User.collection().find_one({"_id": oid}, {"_id": 1}) is None:
                raise NotFound("User not found")
            raise InvalidState("Only approved, active users can be deactivated")

        Log(DEACTIVATE, "users", to_object_id(acting_admin_id), oid,
            changes={"is_active": False}, timestamp=now).save()
        logger.info("User %s deactivated by %s", user["username"], acting_admin_id)
        return user

    @staticmethod
    def stats():
        overall = {status: 0 for status in APPROVAL_STATUSES}
        for row in User.collection().aggregate([
            {"$group": {"_id": "$approval_status", "count": {"$sum": 1}}}
        ]):
            overall[row["_id"]] = row["count"]

        by_user_type = {}
        for row in User.collection().aggregate([
            {"$group": {
                "_id": {"user_type": "$user_type", "approval_status": "$approval_status"},
                "count": {"$sum": 1}
            }}
        ]):
            user_type = row["_id"]["user_type"]
            bucket = by_user_type.setdefault(user_type, {status: 0 for status in APPROVAL_STATUSES})
            bucket[row["_id"]["approval_status"]] = row["count"]

        return {"overall": overall, "byUserType": by_user_type}
