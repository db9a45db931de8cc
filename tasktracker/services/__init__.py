"""Service layer: role checks, the task hierarchy and the operations built on them."""
