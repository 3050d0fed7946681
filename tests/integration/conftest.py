import os

import pytest
from dotenv import find_dotenv, load_dotenv

# Cargar .env lo más temprano posible (antes de pytest_collection_modifyitems)
load_dotenv(find_dotenv(usecwd=True))


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    missing = [name for name in ("MATRIXFLOW_API_KEY", "MATRIXFLOW_BASE_URL") if not os.getenv(name)]
    for item in items:
        if "integration" in item.keywords and missing:
            item.add_marker(pytest.mark.skip(reason=f"Falta {', '.join(missing)} en entorno/.env"))
