"""Per-day departure slots: capacity store, availability engine and mutator."""
