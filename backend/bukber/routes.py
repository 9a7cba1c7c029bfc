from flask import Blueprint, jsonify

from bukber import registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Bukber Championship server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(registry)})
