"""GitHub client construction and the adapter used by the sync workflow."""
