"""Shopping cart and multi-item checkout."""
