"""Development entry point: ``python app.py`` or ``flask --app app run``."""

from src.workforce_ops.workforce_ops.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
