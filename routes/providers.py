from flask import Blueprint, request, jsonify

from services.user_service import find_public_providers
from utils.serializers import provider_json

providers_bp = Blueprint("providers", __name__, url_prefix="/providers")


@providers_bp.get("")
def list_providers():
    rows = find_public_providers(request.args.get("search", ""))
    return jsonify([provider_json(u) for u in rows]), 200
