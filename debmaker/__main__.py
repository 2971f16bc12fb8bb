"""支持 ``python -m debmaker``"""

from .cli.main import app

if __name__ == "__main__":
    app()
