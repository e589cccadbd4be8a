"""Internal helpers for :class:`statetree.store.Store`."""
