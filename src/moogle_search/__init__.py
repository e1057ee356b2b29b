"""moogle-search: in-memory vector-space search over plain-text documents."""
