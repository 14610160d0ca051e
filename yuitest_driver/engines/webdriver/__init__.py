"""W3C WebDriver engine module."""

from yuitest_driver.engines.webdriver.engine import WebDriverEngine
from yuitest_driver.engines.webdriver.manifest import webdriver_manifest

__all__ = ["WebDriverEngine", "webdriver_manifest"]
