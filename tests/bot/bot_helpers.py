from types import SimpleNamespace

USER_ID = 42
ADMIN_ID = 1001


def find_handler(router, name: str):
    """Handler registered inside a flow's setup() by function name."""
    for observer in (router.message, router.callback_query):
        for handler in observer.handlers:
            if handler.callback.__name__ == name:
                return handler.callback
    for sub in router.sub_routers:
        try:
            return find_handler(sub, name)
        except LookupError:
            continue
    raise LookupError(name)


def make_user(user_id: int = USER_ID):
    return SimpleNamespace(id=user_id, username="alice", first_name="Alice")


def answered_texts(mock) -> list[str]:
    """First positional argument of every answer()/edit_text() call."""
    return [c.args[0] for c in mock.await_args_list if c.args]
