from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from dicey.services.decision import room_status
from dicey.services.errors import ValidationError
from dicey.services.repository import SqlAlchemyRoomRepository
from dicey.services.rooms import RoomService


def room_service():
    config = current_app.config
    return RoomService(
        SqlAlchemyRoomRepository(code_length=config["ROOM_CODE_LENGTH"]),
        rng=config.get("TIEBREAKER_RNG"),
        default_tiebreaker=config["DEFAULT_TIEBREAKER"],
    )


def room_payload(room):
    return {
        "id": room.id,
        "title": room.title,
        "description": room.description,
        "code": room.code,
        "created_at": room.created_at.isoformat() if room.created_at else None,
        "owner_id": room.owner_id,
        "max_participants": room.max_participants,
        "allow_participants_to_add_options": room.allow_participants_to_add_options,
        "status": room_status(room),
        "is_completed": room.is_completed,
        "winning_option_id": room.winning_option_id,
        "tiebreaker_used": room.tiebreaker_used,
        "tiebreaker_detail": room.tiebreaker_detail,
    }


def option_payload(option):
    return {
        "id": option.id,
        "room_id": option.room_id,
        "text": option.text,
        "created_by_id": option.created_by_id,
        "created_at": option.created_at.isoformat() if option.created_at else None,
    }


def vote_payload(vote):
    return {
        "id": vote.id,
        "room_id": vote.room_id,
        "user_id": vote.user_id,
        "option_id": vote.option_id,
    }


def _json_body():
    return request.get_json(silent=True) or {}


def _required_id(data, key):
    value = data.get(key)
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} is required and must be an integer.")


def register_room_routes(app):
    @app.route("/api/rooms", methods=["POST"])
    @login_required
    def create_room():
        data = _json_body()
        room = room_service().create_room(
            owner_id=current_user.id,
            title=data.get("title"),
            description=data.get("description"),
            max_participants=data.get("max_participants"),
            allow_participants_to_add_options=data.get(
                "allow_participants_to_add_options", True
            ),
        )
        return jsonify({"ok": True, "room": room_payload(room)}), 201

    @app.route("/api/rooms", methods=["GET"])
    @login_required
    def list_rooms():
        rooms = room_service().list_rooms_for_user(current_user.id)
        return jsonify({"ok": True, "rooms": [room_payload(room) for room in rooms]})

    @app.route("/api/rooms/join", methods=["POST"])
    @login_required
    def join_room():
        code = _json_body().get("code")
        if not code:
            raise ValidationError("Room code is required.")
        room = room_service().join_room(code, current_user.id)
        return jsonify({"ok": True, "room": room_payload(room)})

    @app.route("/api/rooms/<code>", methods=["GET"])
    @login_required
    def room_by_code(code):
        room = room_service().get_room_by_code(code)
        return jsonify({"ok": True, "room": room_payload(room)})

    @app.route("/api/rooms/<int:room_id>/detail")
    @login_required
    def room_detail(room_id):
        detail = room_service().get_room(room_id, current_user.id)
        user_vote = detail["user_vote"]
        return jsonify(
            {
                "ok": True,
                "room": room_payload(detail["room"]),
                "options": [option_payload(option) for option in detail["options"]],
                "participant_count": detail["participant_count"],
                "user_vote": vote_payload(user_vote) if user_vote else None,
                "is_owner": detail["is_owner"],
            }
        )

    @app.route("/api/rooms/<int:room_id>", methods=["DELETE"])
    @login_required
    def delete_room(room_id):
        room_service().delete_room(room_id, current_user.id)
        return jsonify({"ok": True})

    @app.route("/api/rooms/<int:room_id>/voting/open", methods=["POST"])
    @login_required
    def open_voting(room_id):
        room = room_service().open_voting(room_id, current_user.id)
        return jsonify({"ok": True, "room": room_payload(room)})

    @app.route("/api/rooms/<int:room_id>/voting/close", methods=["POST"])
    @login_required
    def close_voting(room_id):
        room = room_service().close_voting(room_id, current_user.id)
        return jsonify({"ok": True, "room": room_payload(room)})

    @app.route("/api/rooms/<int:room_id>/tally")
    @login_required
    def room_tally(room_id):
        rows = room_service().get_tally(room_id, user_id=current_user.id)
        return jsonify(
            {
                "ok": True,
                "tally": [
                    {
                        "option_id": row["option_id"],
                        "text": row["text"],
                        "vote_count": row["vote_count"],
                        "percent": row["percent"],
                    }
                    for row in rows
                ],
                "total_votes": sum(row["vote_count"] for row in rows),
            }
        )

    @app.route("/api/rooms/<int:room_id>/complete", methods=["POST"])
    @login_required
    def complete_room(room_id):
        tiebreaker = _json_body().get("tiebreaker")
        room = room_service().complete_decision(
            room_id, current_user.id, tiebreaker=tiebreaker
        )
        return jsonify({"ok": True, "room": room_payload(room)})

    @app.route("/api/rooms/<int:room_id>/options", methods=["GET"])
    @login_required
    def room_options(room_id):
        options = room_service().list_options(room_id, current_user.id)
        return jsonify({"ok": True, "options": [option_payload(option) for option in options]})

    @app.route("/api/options", methods=["POST"])
    @login_required
    def create_option():
        data = _json_body()
        option = room_service().add_option(
            _required_id(data, "room_id"), data.get("text"), current_user.id
        )
        return jsonify({"ok": True, "option": option_payload(option)}), 201

    @app.route("/api/votes", methods=["POST"])
    @login_required
    def cast_vote():
        data = _json_body()
        vote = room_service().cast_vote(
            _required_id(data, "room_id"),
            _required_id(data, "option_id"),
            current_user.id,
        )
        return jsonify({"ok": True, "vote": vote_payload(vote)}), 201
