"""
User management routes.
"""

from training_api import users
from training_api.api.auth import current_identity, token_required
from training_api.api.responses import created, json_body, ok, query_arg


def register_user_routes(app, engine):

    @app.route("/api/users", methods=["GET"])
    @token_required
    def list_users():
        return ok(users.list_users(
            engine, current_identity(), role=query_arg("role"), search=query_arg("search"),
        ))

    @app.route("/api/users/trainers/list", methods=["GET"])
    @token_required
    def list_trainers():
        return ok(users.list_by_role(engine, current_identity(), "trainer"))

    @app.route("/api/users/learners/list", methods=["GET"])
    @token_required
    def list_learners():
        return ok(users.list_by_role(engine, current_identity(), "learner"))

    @app.route("/api/users/<user_id>", methods=["GET"])
    @token_required
    def get_user(user_id):
        return ok(users.get_user(engine, current_identity(), user_id))

    @app.route("/api/users", methods=["POST"])
    @token_required
    def create_user():
        return created(users.create_user(engine, current_identity(), json_body()),
                       "User created successfully")

    @app.route("/api/users/<user_id>", methods=["PUT"])
    @token_required
    def update_user(user_id):
        user = users.update_user(engine, current_identity(), user_id, json_body())
        return ok(user, "User updated successfully")

    @app.route("/api/users/<user_id>", methods=["DELETE"])
    @token_required
    def delete_user(user_id):
        users.delete_user(engine, current_identity(), user_id)
        return ok(message="User deleted successfully")

    @app.route("/api/users/<user_id>/profile-data", methods=["PUT"])
    @token_required
    def update_profile_data(user_id):
        data = json_body()
        users.set_profile_value(engine, current_identity(), user_id, data.get("fieldId"), data.get("value"))
        return ok(message="Profile data updated successfully")
