from config import SETTINGS
from app import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host=SETTINGS.HOST, port=SETTINGS.PORT, debug=SETTINGS.DEBUG)
