import threading

from flask import Flask, request, jsonify
from flask_cors import CORS

from collaborators import JsonFileBestScoreStore
from config import GameConfig, ServerConfig
from engine import GameEngine
from game import InvalidDirectionError, NoHistoryError


def create_app(engine=None):
    """Builds the Flask app around one game engine."""
    app = Flask(__name__)
    CORS(app, resources={r"/*": {"origins": "*"}})

    if engine is None:
        engine = GameEngine(config=GameConfig(size=ServerConfig.SIZE),
                            best_scores=JsonFileBestScoreStore(ServerConfig.BEST_SCORE_PATH))
    app.config["ENGINE"] = engine
    lock = threading.Lock()

    @app.route('/state', methods=['GET'])
    def get_state():
        with lock:
            return jsonify({'state': engine.state()})

    @app.route('/new-game', methods=['POST'])
    def new_game():
        with lock:
            engine.new_game()
            return jsonify({'state': engine.state()})

    @app.route('/move', methods=['POST'])
    def move():
        """Applies one move; 'moved' is false when the grid did not change."""
        data = request.get_json(silent=True)
        direction = data.get('direction') if isinstance(data, dict) else None
        with lock:
            try:
                moved = engine.attempt_move(direction)
            except InvalidDirectionError as e:
                app.logger.debug(f"Rejected move: {e}")
                return jsonify({'error': str(e), 'state': engine.state()}), 400
            return jsonify({'moved': moved, 'state': engine.state()})

    def _undo(action):
        with lock:
            try:
                action()
            except NoHistoryError as e:
                return jsonify({'error': str(e), 'state': engine.state()}), 409
            return jsonify({'state': engine.state()})

    @app.route('/undo', methods=['POST'])
    def undo():
        return _undo(engine.undo)

    @app.route('/undo-with-ad', methods=['POST'])
    def undo_with_ad():
        """Undo unlocked by watching an interstitial ad."""
        return _undo(engine.undo_with_ad)

    @app.route('/continue', methods=['POST'])
    def continue_playing():
        with lock:
            engine.continue_playing()
            return jsonify({'state': engine.state()})

    return app


if __name__ == '__main__':
    app = create_app()
    print(f"Best score: {app.config['ENGINE'].best_score}")
    print(f"Server starting on http://localhost:{ServerConfig.PORT}")
    app.run(host=ServerConfig.HOST, port=ServerConfig.PORT, debug=False)
