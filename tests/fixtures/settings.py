"""Settings values shared by publisher tests."""

TOP_PAGE_ID = "100"
SPACE_KEY = "DOCS"
MY_ACCOUNT_ID = "me-123"


def settings_values(content_root, **overrides):
    """Complete settings publishing content_root/docs below TOP_PAGE_ID."""
    values = {
        'confluence_base_url': "https://example.atlassian.net",
        'confluence_parent_id': TOP_PAGE_ID,
        'atlassian_user_name': "me@example.com",
        'atlassian_api_token': "token-123",
        'folder_to_publish': "docs",
        'content_root': str(content_root),
    }
    values.update(overrides)
    return values
