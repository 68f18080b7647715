"""Pytest configuration for the ccpc-comp-planner test suite."""

# Configure pytest-asyncio so the MCP server's async handlers can be tested
pytest_plugins = ('pytest_asyncio',)

# Register the asyncio marker used by the async tests
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )
