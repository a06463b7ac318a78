"""lazy-release: release pull requests planned from remote repository history."""
