pytest_plugins = [
    "tests.fixtures.settings_fixtures",
    "tests.fixtures.aws_fixtures",
    "tests.fixtures.cdk_fixtures",
]
