"""Firestore client construction and request-scoped access."""

import logging

import firebase_admin
from fastapi import Request
from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore import Client

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
CARS_COLLECTION = "cars"
FAVORITES_COLLECTION = "favorites"


def create_firestore_client(app: firebase_admin.App) -> Client:
    """Build the Firestore client bound to the given Firebase app."""
    return firestore.client(app)


def get_db(request: Request) -> Client:
    """Dependency that returns the Firestore client created at startup."""
    return request.app.state.db


def check_db_connected(db: Client) -> bool:
    """Run a trivial read to verify Firestore is reachable."""
    try:
        db.collection(CARS_COLLECTION).limit(1).get()
        return True
    except GoogleAPICallError as e:
        logger.warning("Firestore connectivity check failed: %s", e)
        return False
