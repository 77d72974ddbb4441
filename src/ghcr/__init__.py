"""gh-cr: review GitHub pull request threads from the terminal."""
