from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- DISCOUNTS ----------------
    ActivityCode.CREATE_DISCOUNT:
        "{actor_name} created discount {target_name} ({target_code})",

    ActivityCode.UPDATE_DISCOUNT:
        "{actor_name} updated discount {target_name} ({target_code}): {changes}",

    ActivityCode.TOGGLE_DISCOUNT:
        "{actor_name} set discount {target_code} active={is_active}",

    ActivityCode.DELETE_DISCOUNT:
        "{actor_name} deleted discount {target_name} ({target_code})",

    ActivityCode.APPLY_DISCOUNT:
        "{actor_name} applied discount {target_code} to receipt #{receipt_id}, saved {amount_saved}",

    # ---------------- RECEIPTS ----------------
    ActivityCode.CREATE_RECEIPT:
        "{actor_name} created receipt #{receipt_id} with total {total}",

    ActivityCode.COMPLETE_RECEIPT:
        "{actor_name} completed receipt #{receipt_id}",

    # ---------------- KITCHEN ----------------
    ActivityCode.UPDATE_ITEM_STATUS:
        "{actor_name} moved item {item_name} on receipt #{receipt_id} from {old_status} to {new_status}",
}
