"""WebDriver engine manifest."""

from yuitest_driver.engines.manifest import EngineManifest
from yuitest_driver.engines.webdriver.engine import WebDriverEngine

webdriver_manifest = EngineManifest(engine_factory=WebDriverEngine.from_config)
