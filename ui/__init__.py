"""Pages and page navigation."""
