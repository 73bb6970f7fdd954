"""
Vercel serverless function handler for the FastAPI backend
"""
import os

# Set Vercel environment flag before any imports
os.environ["VERCEL"] = "1"

# Load environment variables from Vercel (they're already in os.environ)
# But also try to load from .env if it exists (for local testing)
from dotenv import load_dotenv
load_dotenv()

from mangum import Mangum

from readingbuddy.database import init_db
from readingbuddy.main import app

# Lifespan events are off in serverless, so create the tables here
init_db()

handler = Mangum(app, lifespan="off")
