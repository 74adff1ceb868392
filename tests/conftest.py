import os
import sys

# Ensure the packages are importable without installation
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep service tests away from any cluster the runner happens to be in
os.environ.setdefault("SECRET_BACKEND", "file")
os.environ.setdefault("LOG_JSON", "false")
