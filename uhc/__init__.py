from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO
from dotenv import load_dotenv
import logging
import os

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(level=logging.INFO)

# Setup of key Flask object (app)
app = Flask(__name__)

# The game host bridge connects from wherever the game server runs
app.config['UHC_CORS_ORIGINS'] = os.environ.get('UHC_CORS_ORIGINS') or '*'
CORS(app, origins=app.config['UHC_CORS_ORIGINS'])

# Initialize Flask-SocketIO for the host bridge
# 'threading' works everywhere; set UHC_ASYNC_MODE=eventlet when running under an eventlet worker
async_mode = os.environ.get('UHC_ASYNC_MODE') or 'threading'

socketio = SocketIO(
    app,
    cors_allowed_origins=app.config['UHC_CORS_ORIGINS'],
    async_mode=async_mode,
    logger=False,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25
)

# Configure Flask Port
app.config['UHC_PORT'] = int(os.environ.get('UHC_PORT') or 8306)
app.config['UHC_HOST'] = os.environ.get('UHC_HOST') or '0.0.0.0'

# Browser settings
SECRET_KEY = os.environ.get('SECRET_KEY') or 'SECRET_KEY'
app.config['SECRET_KEY'] = SECRET_KEY

# Match settings
app.config['UHC_GRACE_MINUTES'] = int(os.environ.get('UHC_GRACE_MINUTES') or 5)
app.config['UHC_LOBBY_BORDER_SIZE'] = float(os.environ.get('UHC_LOBBY_BORDER_SIZE') or 500)
app.config['UHC_FLIGHT_STRIP_BELOW_Y'] = float(os.environ.get('UHC_FLIGHT_STRIP_BELOW_Y') or 210)

# Database settings
dbName = 'uhc_settings'
os.makedirs(app.instance_path, exist_ok=True)
dbURI = os.environ.get('UHC_DATABASE_URI') or 'sqlite:///' + os.path.join(app.instance_path, dbName + '.db')

app.config['SQLALCHEMY_DATABASE_NAME'] = dbName
app.config['SQLALCHEMY_DATABASE_URI'] = dbURI
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
db = SQLAlchemy(app)
