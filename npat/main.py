from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Server is up and running'})


@main.route('/health')
def health():
    registry = current_app.extensions['npat'].registry
    return jsonify({'status': 'ok', 'sessions': len(registry)})
