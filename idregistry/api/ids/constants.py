"""Constants for ID routes."""

ID_UPDATE_NOT_AVAILABLE_DETAIL = "Updating IDs is not yet available"
ID_DELETE_NOT_AVAILABLE_DETAIL = "Deleting IDs is not yet available"
