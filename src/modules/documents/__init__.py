"""Documents module - documents, sharing, collaborators, comments and versions."""
