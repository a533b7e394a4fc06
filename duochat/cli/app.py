from __future__ import annotations

import asyncio
import os
from typing import Any

import httpx
import solara

from duochat.agent.auth import LocalAuth
from duochat.agent.chat_handler import ChatService
from duochat.api.deps import get_config
from duochat.dispatch.errors import SessionBusyError
from duochat.models.enums import AttachmentStatus, Role
from duochat.utils.attachment_encoder import create_attachment


def _gateway_client() -> httpx.AsyncClient:
    gateway = get_config().gateway
    base_url = os.getenv("DUOCHAT_GATEWAY_URL") or gateway.base_url
    return httpx.AsyncClient(base_url=base_url, timeout=gateway.timeout)


def _file_field(file_info: Any, key: str) -> Any:
    if isinstance(file_info, dict):
        return file_info.get(key)
    return getattr(file_info, key, None)


@solara.component
def Page() -> None:
    auth = solara.use_memo(LocalAuth, dependencies=[])
    user, set_user = solara.use_state(auth.user)

    if user is None:
        _render_login(auth, set_user)
        return

    with solara.Column(gap="1rem", align="stretch"):
        with solara.Row(justify="space-between", style={"alignItems": "center"}):
            solara.Markdown(f"## Czat · {user.name or user.email}")

            def logout() -> None:
                auth.logout()
                set_user(None)

            solara.Button("Wyloguj", on_click=logout, text=True)
        _render_profile(auth, user, set_user)
        _render_chat()


@solara.component
def _render_login(auth: LocalAuth, set_user) -> None:
    email, set_email = solara.use_state("")
    password, set_password = solara.use_state("")
    error, set_error = solara.use_state("")

    def submit() -> None:
        if auth.login(email, password):
            set_error("")
            set_user(auth.user)
        else:
            set_error("Nieprawidłowy email lub hasło")

    with solara.Card("Logowanie"):
        solara.InputText("Email", value=email, on_value=set_email)
        solara.InputText("Hasło", value=password, on_value=set_password, password=True)
        solara.Button("Zaloguj", on_click=submit)
        if error:
            solara.Error(error)


@solara.component
def _render_profile(auth: LocalAuth, user, set_user) -> None:
    name, set_name = solara.use_state(user.name or "")
    avatar, set_avatar = solara.use_state(user.avatar or "")

    def save() -> None:
        set_user(auth.update_profile(name=name.strip() or None, avatar=avatar.strip() or None))

    with solara.Details("Profil"):
        solara.InputText("Imię", value=name, on_value=set_name)
        solara.InputText("Avatar (URL)", value=avatar, on_value=set_avatar)
        solara.Button("Zapisz profil", on_click=save)


@solara.component
def _render_chat() -> None:
    _version, set_version = solara.use_state(0)
    input_text, set_input_text = solara.use_state("")
    pending_text, set_pending_text = solara.use_state("")
    send_trigger, set_send_trigger = solara.use_state(0)
    selected, set_selected = solara.use_state([])
    error, set_error = solara.use_state("")

    def bump() -> None:
        set_version(lambda v: v + 1)

    service = solara.use_memo(
        lambda: ChatService(_gateway_client(), on_update=bump), dependencies=[]
    )

    def _close_on_unmount():
        def cleanup() -> None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                asyncio.run(service.aclose())
            else:
                loop.create_task(service.aclose())

        return cleanup

    solara.use_effect(_close_on_unmount, [service])

    async def _encode() -> None:
        if not selected:
            return
        batch = []
        for file_info in selected:
            name = str(_file_field(file_info, "name") or "")
            source = _file_field(file_info, "file_obj") or _file_field(file_info, "data")
            batch.append(
                create_attachment(name, source_file=source, size=_file_field(file_info, "size"))
            )
        await service.add_attachments(batch)
        bump()

    solara.tasks.use_task(_encode, dependencies=[selected])

    async def _send() -> None:
        if send_trigger == 0:
            return
        try:
            await service.submit(pending_text)
            set_error("")
        except SessionBusyError as e:
            set_error(str(e))
        finally:
            bump()

    solara.tasks.use_task(_send, dependencies=[send_trigger])

    with solara.Column(gap="0.75rem"):
        with solara.Row(justify="end"):

            def clear_history() -> None:
                service.clear_history()
                bump()

            solara.Button("Wyczyść historię", on_click=clear_history, text=True)

        for m in service.session.messages:
            prefix = "Ty" if m.role == Role.user else "Asystent"
            with solara.Card():
                solara.Markdown(f"**{prefix}:**\n\n{m.content}")
                for a in m.attachments or []:
                    solara.Text(f"📎 {a.display_name}")

        solara.FileDropMultiple("Upuść obrazy lub pliki PDF", on_file=set_selected)
        for index, a in enumerate(service.pending.items):
            with solara.Row(style={"alignItems": "center"}):
                label = a.display_name
                if a.status == AttachmentStatus.failed:
                    label = f"{label} (błąd: {a.error})"
                solara.Text(label)

                def remove(index: int = index) -> None:
                    service.remove_attachment(index)
                    bump()

                solara.Button("Usuń", on_click=remove, text=True)

        def send_message() -> None:
            if service.busy:
                return
            if not input_text.strip() and not service.pending.items:
                return
            set_pending_text(input_text)
            set_input_text("")
            set_send_trigger(send_trigger + 1)

        solara.InputTextArea(label="Wiadomość", value=input_text, on_value=set_input_text, rows=3)
        solara.Button("Wyślij", on_click=send_message, disabled=service.busy)
        if service.busy:
            solara.Text("Przetwarzanie...")
        if error:
            solara.Error(error)
