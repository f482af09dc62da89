"""Tests for note writes, form validation and CSV import."""

import io
from datetime import date, datetime, timezone

import pytest

from dashboard.config import NOTES_COLLECTION
from dashboard.errors import NoValidRowsError, PermissionDeniedError, StoreError, ValidationError
from dashboard.models.note_models import NoteDraft, NoteStatus
from dashboard.models.user_models import Role, UserAccount
from dashboard.services.notes_service import (
    IMPORTED_CATEGORY,
    add_note,
    build_draft,
    delete_note,
    import_notes,
    read_csv_rows,
    row_to_draft,
    rows_to_drafts,
    search_notes,
    search_users,
    update_note,
)


def valid_form(**overrides):
    form = {
        "client": "Auto Peças Silva",
        "category": "Peças",
        "issue_date": date(2024, 3, 5),
        "amount": 250.0,
        "status": "Unpaid",
        "document_number": "",
        "description": "Pastilhas de freio",
        "vehicle_plate": "abc1234",
    }
    form.update(overrides)
    return form


@pytest.fixture
def editor(make_profile):
    return make_profile(uid="u-editor", role=Role.EDITOR)


@pytest.fixture
def viewer(make_profile):
    return make_profile(uid="u-viewer", role=Role.VIEWER)


# ---------------------------------------------------------------------------
# build_draft
# ---------------------------------------------------------------------------

def test_build_draft_valid_form():
    draft = build_draft(valid_form())
    assert draft.client == "Auto Peças Silva"
    assert draft.issue_date == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert draft.amount == 250.0
    assert draft.vehicle_plate == "ABC1234"
    assert draft.document_number is None
    assert draft.status is NoteStatus.UNPAID


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"client": "  "}, "client"),
        ({"category": None}, "category"),
        ({"issue_date": ""}, "issue_date"),
        ({"issue_date": "not a date"}, "issue_date"),
        ({"amount": ""}, "amount"),
        ({"amount": "abc"}, "amount"),
        ({"amount": -1}, "amount"),
        ({"amount": "-5"}, "amount"),
    ],
)
def test_build_draft_rejects_invalid_field(overrides, field):
    with pytest.raises(ValidationError) as exc:
        build_draft(valid_form(**overrides))
    assert exc.value.field == field


def test_build_draft_negative_message():
    with pytest.raises(ValidationError) as exc:
        build_draft(valid_form(amount=-10))
    assert exc.value.user_message == "O valor não pode ser negativo."


@pytest.mark.parametrize("text, expected", [("1.234,56", 1234.56), ("10.5", 10.5), ("0", 0.0)])
def test_build_draft_amount_text(text, expected):
    assert build_draft(valid_form(amount=text)).amount == pytest.approx(expected)


def test_build_draft_accepts_br_date_text():
    draft = build_draft(valid_form(issue_date="05/03/2024", status="Paid"))
    assert draft.issue_date == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert draft.status is NoteStatus.PAID


# ---------------------------------------------------------------------------
# Persisted layout
# ---------------------------------------------------------------------------

def test_to_document_layout():
    doc = build_draft(valid_form()).to_document()
    assert doc == {
        "cliente": "Auto Peças Silva",
        "categoria": "Peças",
        "valor": 250.0,
        "dataEmissao": "2024-03-05T00:00:00.000Z",
        "status": "Unpaid",
        "materialServico": "Pastilhas de freio",
        "veiculoPlaca": "ABC1234",
    }


def test_to_document_include_empty_clears_optionals():
    doc = NoteDraft(client="A", category="B", amount=1.0,
                    issue_date=datetime(2024, 1, 1, tzinfo=timezone.utc)).to_document(include_empty=True)
    assert doc["nNota"] == ""
    assert doc["materialServico"] == ""
    assert doc["veiculoPlaca"] == ""


# ---------------------------------------------------------------------------
# add / update / delete
# ---------------------------------------------------------------------------

def test_add_note_uses_server_timestamp(store, editor):
    key = add_note(store, editor, build_draft(valid_form()))

    _, path, value = store.mutations()[0]
    assert path == f"{NOTES_COLLECTION}/{key}"
    assert value["createdAt"] is store.server_timestamp
    assert store.data[NOTES_COLLECTION][key]["cliente"] == "Auto Peças Silva"


def test_add_note_denied_for_viewer(store, viewer):
    with pytest.raises(PermissionDeniedError):
        add_note(store, viewer, build_draft(valid_form()))
    assert store.calls == []


def test_add_note_store_failure(store, editor):
    store.fail_writes = True
    with pytest.raises(StoreError) as exc:
        add_note(store, editor, build_draft(valid_form()))
    assert exc.value.user_message == "Erro ao salvar o registro."


def test_update_note_never_rewrites_created_at(store, editor):
    store.seed(NOTES_COLLECTION, "n1", {"cliente": "Velho", "createdAt": 5, "nNota": "123"})

    update_note(store, editor, "n1", build_draft(valid_form()))

    _, _, fields = store.mutations()[0]
    assert "createdAt" not in fields
    assert fields["nNota"] == ""
    assert store.data[NOTES_COLLECTION]["n1"]["createdAt"] == 5


def test_delete_note(store, editor):
    store.seed(NOTES_COLLECTION, "n1", {"cliente": "A"})
    delete_note(store, editor, "n1")
    assert "n1" not in store.data[NOTES_COLLECTION]


def test_delete_note_failure_message(store, editor):
    store.fail_writes = True
    with pytest.raises(StoreError) as exc:
        delete_note(store, editor, "n1")
    assert exc.value.user_message == "Erro ao excluir o registro."


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

CSV_TEXT = (
    "Cliente;Data;Valor;Categoria;Placa;Status\n"
    "Posto Central;05/03/2024;1.234,56;Combustível;abc1234;Paid\n"
    ";06/03/2024;10,00;Peças;;\n"
    "Oficina;data ruim;50,00;;;\n"
    "Oficina;07/03/2024;;;;\n"
)


def test_read_csv_rows_keeps_text():
    rows = read_csv_rows(io.StringIO(CSV_TEXT))
    assert len(rows) == 4
    assert rows[0]["Valor"] == "1.234,56"
    assert rows[1]["Cliente"] == ""


def test_read_csv_rows_empty_file():
    with pytest.raises(ValidationError):
        read_csv_rows(io.StringIO(""))


def test_rows_with_missing_fields_are_skipped():
    drafts, skipped = rows_to_drafts(read_csv_rows(io.StringIO(CSV_TEXT)))
    assert skipped == 3
    assert len(drafts) == 1
    draft = drafts[0]
    assert draft.amount == pytest.approx(1234.56)
    assert draft.vehicle_plate == "ABC1234"
    assert draft.status is NoteStatus.PAID


def test_row_aliases_and_default_category():
    draft = row_to_draft({
        "Fornecedor": "Borracharia", "Data Emissao": "2024-02-01",
        "Valor Total": "80,00", "N Nota": "77", "Material/Serviço": "Pneu",
    })
    assert draft.client == "Borracharia"
    assert draft.category == IMPORTED_CATEGORY
    assert draft.document_number == "77"
    assert draft.description == "Pneu"


def test_row_with_zero_amount_is_rejected():
    assert row_to_draft({"Cliente": "A", "Data": "01/01/2024", "Valor": "0,00"}) is None


def test_import_without_valid_rows_never_touches_store(store, editor):
    rows = [{"Cliente": "", "Data": "01/01/2024", "Valor": "10"}, {"Cliente": "A"}]
    with pytest.raises(NoValidRowsError):
        import_notes(store, editor, rows)
    assert store.calls == []


def test_import_single_commit(store, editor):
    result = import_notes(store, editor, read_csv_rows(io.StringIO(CSV_TEXT)))

    commits = [call for call in store.calls if call[0] == "commit"]
    assert len(commits) == 1
    writes = commits[0][1]
    assert list(writes) == [f"{NOTES_COLLECTION}/{key}" for key in result.keys]
    assert all(doc["createdAt"] is store.server_timestamp for doc in writes.values())
    assert (result.imported, result.skipped) == (1, 3)


def test_import_denied_for_viewer(store, viewer):
    with pytest.raises(PermissionDeniedError):
        import_notes(store, viewer, [{"Cliente": "A", "Data": "01/01/2024", "Valor": "10"}])
    assert store.calls == []


def test_import_failure(store, editor):
    store.fail_writes = True
    with pytest.raises(StoreError) as exc:
        import_notes(store, editor, [{"Cliente": "A", "Data": "01/01/2024", "Valor": "10"}])
    assert exc.value.user_message == "Falha na importação do CSV."


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def test_search_notes(make_note):
    notes = [make_note(client="Posto Central"), make_note(client="Oficina", category="Peças")]
    assert [n.client for n in search_notes(notes, "peç")] == ["Oficina"]
    assert len(search_notes(notes, "  ")) == 2


def test_search_users():
    users = [UserAccount("u1", "ana@empresa.com"), UserAccount("u2", "bruno@empresa.com")]
    assert [u.uid for u in search_users(users, "BRUNO")] == ["u2"]
