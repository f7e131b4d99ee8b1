import os
from pathlib import Path


studio_base_path = Path(os.path.dirname(__file__))
