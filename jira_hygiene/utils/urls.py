"""URL helpers for building Jira links."""


def ensure_trailing_slash(value: str) -> str:
    """Return ``value`` with exactly the trailing slash Jira paths expect."""
    return value if value.endswith("/") else f"{value}/"


def issue_url(base_url: str, issue_key: str) -> str:
    """Browse link for a single issue."""
    return f"{ensure_trailing_slash(base_url)}browse/{issue_key}"


def filter_url(base_url: str, filter_id: int) -> str:
    """Issue navigator link for a saved filter."""
    return f"{ensure_trailing_slash(base_url)}issues/?filter={filter_id}"
