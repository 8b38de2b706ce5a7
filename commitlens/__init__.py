"""CommitLens — weighted git-history analytics."""
