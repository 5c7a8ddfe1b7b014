"""Services for resalloc-kubernetes."""
