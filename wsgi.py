# wsgi.py — point d'entrée (gunicorn wsgi:app, ou python wsgi.py en local)
from app import create_app, install_crash_log

app = create_app()
install_crash_log(app.config["CRASH_LOG"])

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"])
