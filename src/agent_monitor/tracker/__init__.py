"""Task tracker clients (Asana)."""
