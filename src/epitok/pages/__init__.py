"""One module per intranet endpoint family (planning, registered students)."""
