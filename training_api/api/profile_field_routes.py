"""
Custom profile field routes.
"""

from training_api import profile_fields
from training_api.api.auth import current_identity, token_required
from training_api.api.responses import created, json_body, ok


def register_profile_field_routes(app, engine):

    @app.route("/api/profile-fields", methods=["GET"])
    @token_required
    def list_fields():
        return ok(profile_fields.list_fields(engine, current_identity()))

    @app.route("/api/profile-fields/reorder", methods=["POST"])
    @token_required
    def reorder_fields():
        profile_fields.reorder_fields(engine, current_identity(), json_body().get("fieldIds"))
        return ok(message="Fields reordered successfully")

    @app.route("/api/profile-fields/<field_id>", methods=["GET"])
    @token_required
    def get_field(field_id):
        return ok(profile_fields.get_field(engine, current_identity(), field_id))

    @app.route("/api/profile-fields", methods=["POST"])
    @token_required
    def create_field():
        return created(profile_fields.create_field(engine, current_identity(), json_body()),
                       "Profile field created successfully")

    @app.route("/api/profile-fields/<field_id>", methods=["PUT"])
    @token_required
    def update_field(field_id):
        field = profile_fields.update_field(engine, current_identity(), field_id, json_body())
        return ok(field, "Profile field updated successfully")

    @app.route("/api/profile-fields/<field_id>", methods=["DELETE"])
    @token_required
    def delete_field(field_id):
        profile_fields.delete_field(engine, current_identity(), field_id)
        return ok(message="Profile field deleted successfully")
