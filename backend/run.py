from app import create_app, socketio
from app.services.listings.scheduler import start_cleanup_scheduler

app = create_app()

if __name__ == '__main__':
    start_cleanup_scheduler(app)
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True, use_reloader=False)
