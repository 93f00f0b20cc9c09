"""Testing – doubles for code built on cachepool."""
