# main.py

import logging
import os
import sys
import threading
import uuid
from flask import Flask, jsonify, request
from lotus.converter import run_converter
from lotus.database import load_data
from lotus.director import EventDirector
from lotus.engine import GameEngine
from lotus.procedural import ProceduralGenerator

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

DATA_DIR = os.environ.get('LOTUS_DATA_DIR', 'data')


def create_app(data_dir=DATA_DIR):
    app = Flask(__name__)

    # --- INITIALIZATION ---
    print(">>> LOTUS: Initializing system...")
    db = load_data(data_dir)
    rules = db['config']

    generator = ProceduralGenerator(
        db['library'],
        max_attempts=rules['generator']['max_attempts'],
        wildcard_probability=rules['generator']['wildcard_probability']
    )
    director = EventDirector(
        db['events'],
        generator=generator,
        dynamic_probability=rules['director']['dynamic_probability']
    )
    print(">>> LOTUS: Ready.")

    # Sessions: cookie -> (engine, lock). Requests of one session run one at a time.
    games = {}
    games_lock = threading.Lock()

    def get_game():
        user_id = request.cookies.get('lotus_session')
        with games_lock:
            if not user_id or user_id not in games:
                user_id = str(uuid.uuid4())
                games[user_id] = (GameEngine(db, director), threading.Lock())
            game, lock = games[user_id]
        return game, lock, user_id

    def respond(payload, user_id, status=200):
        resp = jsonify(payload)
        resp.status_code = status
        resp.set_cookie('lotus_session', user_id)
        return resp

    # --- ROUTES ---

    @app.route('/')
    @app.route('/get_state')
    def get_state():
        game, lock, user_id = get_game()
        with lock:
            return respond(game.get_view_data(), user_id)

    @app.route('/move', methods=['POST'])
    def move():
        game, lock, user_id = get_game()
        d = request.get_json(silent=True) or {}
        with lock:
            result = game.move(d.get('direction', 1))
            return respond(result, user_id, 400 if result['status'] == 'error' else 200)

    @app.route('/review', methods=['POST'])
    def review():
        game, lock, user_id = get_game()
        d = request.get_json(silent=True) or {}
        with lock:
            result = game.review(d.get('direction', 1))
            return respond(result, user_id, 400 if result['status'] == 'error' else 200)

    @app.route('/resolve_event', methods=['POST'])
    def resolve_event():
        game, lock, user_id = get_game()
        d = request.get_json(silent=True) or {}
        with lock:
            result = game.resolve_event(d.get('option'))
            return respond(result, user_id, 400 if result['status'] == 'error' else 200)

    @app.route('/director_stats')
    def director_stats():
        return jsonify(director.get_stats())

    return app


if __name__ == '__main__':
    if '--convert' in sys.argv:
        print("Running event data converter...")
        count = run_converter()
        print(f"Successfully generated events.json ({count} events) from CSVs. Exiting.")
        sys.exit(0)

    # Debug=False prevents the console color crash on Windows
    create_app().run(debug=False, port=5000, threaded=True)
