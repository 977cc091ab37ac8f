import pytest

pytest_plugins = "tests.fixtures"

def pytest_addoption(parser):
    parser.addoption("--seed", action="store", default=None, help="Seed for random number generators")

@pytest.fixture(scope="session")
def GLOBAL_SEED(pytestconfig):
    seed_value = pytestconfig.getoption("seed")
    if seed_value is not None:
        seed_value = int(seed_value)
    else:
        seed_value = 123
    print(f"Using seed: {seed_value}")
    return seed_value
