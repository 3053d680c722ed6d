"""Test package for docintel-chat."""
from dotenv import load_dotenv, find_dotenv

# tests never need a .env, but honour one if present
load_dotenv(find_dotenv(usecwd=True))
