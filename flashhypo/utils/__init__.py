from .utils import get_config_dir, list_config, get_config, load_config, load_detector_config
