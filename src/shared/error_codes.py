# src/shared/error_codes.py
# Central mapping for the error contract.
# Keep keys stable; the web and mobile clients branch on `code`.
ERROR_CODES = {
    # ─── Validation & Requests ──────────────────────────────────────────────
    "invalid_input": {
        "http": 400,
        "message": "Validation failed for one or more fields."
    },

    # ─── Authentication & Authorization ────────────────────────────────────
    "unauthenticated": {
        "http": 401,
        "message": "Authentication required. Please provide a valid token."
    },
    "forbidden": {
        "http": 403,
        "message": "You are not allowed to perform this action."
    },

    # ─── Lookups ───────────────────────────────────────────────────────────
    "not_found": {
        "http": 404,
        "message": "Resource not found."
    },

    # ─── Conflicts & State ─────────────────────────────────────────────────
    "conflict": {
        "http": 400,
        "message": "Conflict with existing resource."
    },
    "scheduling_conflict": {
        "http": 400,
        "message": "The veterinarian already has an appointment at that date and time."
    },
    "invalid_state": {
        "http": 400,
        "message": "Operation not allowed in the current state."
    },

    # ─── Remote services ───────────────────────────────────────────────────
    "dependency_error": {
        "http": 500,
        "message": "A downstream service failed to respond."
    },

    # ─── Internal ──────────────────────────────────────────────────────────
    "internal_error": {
        "http": 500,
        "message": "An unexpected error occurred. Please try again later."
    },
}
