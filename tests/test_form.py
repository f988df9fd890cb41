"""Tests for the form context, field registry and widget bindings."""

import pytest

from formvalidator.field import FieldBinding, FieldContext
from formvalidator.form import FormContext, gather_field_results
from formvalidator.types import Rule, ValidateFieldsError


@pytest.fixture
def model():
    return {"email": "", "name": "", "age": 30}


@pytest.fixture
def form(model):
    return FormContext(model, rules={
        "email": [
            {"type": "email", "message": "Invalid email", "trigger": "blur"},
            {"required": True, "message": "Email is required", "trigger": ["blur", "change"]},
        ],
        "age": {"type": "integer", "min": 18, "message": "Adults only"},
    })


async def fails():
    raise ValidateFieldsError([])


# =============================================================================
# Field Registry Tests
# =============================================================================


class TestFieldRegistry:
    def test_mount_registers(self, form):
        field = FieldContext(form, "email").mount()
        assert form.fields == (field,)
        assert field.mounted

    def test_mount_twice_is_noop(self, form):
        field = FieldContext(form, "email")
        field.mount()
        field.mount()
        assert len(form.fields) == 1

    def test_unmount_deregisters(self, form):
        field = FieldContext(form, "email").mount()
        field.unmount()
        field.unmount()
        assert form.fields == ()
        assert not field.mounted

    def test_context_manager(self, form):
        with FieldContext(form, "email") as field:
            assert form.get_field("email") is field
        assert form.get_field("email") is None

    def test_unmount_while_iterating(self, form):
        fields = [FieldContext(form, name).mount() for name in ("email", "name", "age")]
        for field in form.fields:
            field.unmount()
        assert form.fields == ()
        assert len(fields) == 3

    def test_unknown_prop_still_registers(self, form):
        field = FieldContext(form, "nickname").mount()
        assert field in form.fields
        assert field.value is None


# =============================================================================
# Field Context Tests
# =============================================================================


class TestFieldContext:
    def test_value_reads_model(self, form, model):
        field = FieldContext(form, "age")
        assert field.value == 30
        model["age"] = 31
        assert field.value == 31

    def test_required_adds_rule(self, form):
        field = FieldContext(form, "name", required=True, label="Name")
        assert field.rules == (Rule(required=True, message="Name is required"),)
        assert field.is_required

    def test_required_not_duplicated(self, form):
        field = FieldContext(form, "email", required=True)
        assert field.rules == ()
        assert field.is_required

    def test_not_required(self, form):
        assert not FieldContext(form, "age").is_required

    def test_effective_rules_form_first(self, form):
        FieldContext(form, "age", rules={"max": 120, "message": "Too old"}).mount()
        rules = form.effective_rules()["age"]
        assert [r.message for r in rules] == ["Adults only", "Too old"]

    def test_unmounted_item_rules_ignored(self, form):
        FieldContext(form, "name", required=True)
        assert "name" not in form.effective_rules()

    @pytest.mark.asyncio
    async def test_error_view_follows_store(self, form):
        field = FieldContext(form, "email").mount()
        with pytest.raises(ValidateFieldsError):
            await field.validate_field("blur")
        assert field.error.value == "Email is required"
        assert field.display_error == "Email is required"
        field.clear_validate()
        assert field.error.value == ""

    @pytest.mark.asyncio
    async def test_show_message_off(self, form):
        field = FieldContext(form, "email", show_message=False).mount()
        with pytest.raises(ValidateFieldsError):
            await field.validate_field()
        assert field.error.value
        assert field.display_error == ""

    @pytest.mark.asyncio
    async def test_field_without_prop_is_noop(self, form):
        field = FieldContext(form).mount()
        await field.validate_field("blur")
        field.clear_validate()
        field.reset_field()
        assert len(form.store) == 0

    def test_reset_field(self, form, model):
        field = FieldContext(form, "age").mount()
        model["age"] = 5
        form.store.set("age", "Adults only")
        field.reset_field()
        assert model["age"] == 30
        assert field.error.value == ""


# =============================================================================
# Form Operation Tests
# =============================================================================


class TestFormOperations:
    @pytest.mark.asyncio
    async def test_validate_whole_form(self, form, model):
        model["age"] = 12
        with pytest.raises(ValidateFieldsError) as exc_info:
            await form.validate()
        assert set(exc_info.value.fields) == {"email", "age"}
        assert form.errors == {"email": "Email is required", "age": "Adults only"}

    @pytest.mark.asyncio
    async def test_validate_returns_model(self, form, model):
        model["email"] = "ada@example.com"
        assert await form.validate() is model
        assert form.errors == {}

    @pytest.mark.asyncio
    async def test_validate_includes_item_rules(self, form, model):
        model["email"] = "ada@example.com"
        FieldContext(form, "name", required=True, label="Name").mount()
        with pytest.raises(ValidateFieldsError):
            await form.validate()
        assert form.errors == {"name": "Name is required"}

    @pytest.mark.asyncio
    async def test_validate_field_several(self, form, model):
        model["age"] = 12
        with pytest.raises(ValidateFieldsError) as exc_info:
            await form.validate_field(["email", "age"])
        assert {e.field for e in exc_info.value.errors} == {"email", "age"}

    @pytest.mark.asyncio
    async def test_validate_field_by_trigger(self, form, model):
        model["email"] = "not-an-email"
        await form.validate_field("email", "change")
        with pytest.raises(ValidateFieldsError):
            await form.validate_field("email", "blur")
        assert form.errors == {"email": "Invalid email"}

    @pytest.mark.asyncio
    async def test_validate_field_unknown_trigger(self, form, model):
        model["email"] = "not-an-email"
        form.store.set("email", "Invalid email")
        await form.validate_field("email", "submit")
        assert form.errors == {}

    @pytest.mark.asyncio
    async def test_validate_mounted(self, form, model):
        model["age"] = 12
        FieldContext(form, "email").mount()
        with pytest.raises(ValidateFieldsError) as exc_info:
            await form.validate_mounted()
        assert [e.field for e in exc_info.value.errors] == ["email"]
        assert "age" not in form.errors

    @pytest.mark.asyncio
    async def test_validate_mounted_none_mounted(self, form):
        await form.validate_mounted("blur")

    def test_initial_model_is_deep_copy(self, model):
        model["tags"] = ["a"]
        form = FormContext(model)
        model["tags"].append("b")
        form.reset_fields("tags")
        assert model["tags"] == ["a"]

    def test_reset_all(self, form, model):
        model.update({"email": "x@y.io", "age": 99})
        form.store.set("email", "bad")
        form.reset_fields()
        assert model == {"email": "", "name": "", "age": 30}
        assert form.errors == {}

    def test_clear_validate_subset(self, form):
        form.store.update({"email": "a", "age": "b"})
        form.clear_validate(["age"])
        assert form.errors == {"email": "a"}

    def test_close(self, form):
        field = FieldContext(form, "email").mount()
        form.store.set("email", "bad")
        with form:
            pass
        assert form.closed
        assert not field.mounted
        assert form.fields == ()
        assert form.errors == {}


class TestGatherFieldResults:
    @pytest.mark.asyncio
    async def test_all_succeed(self):
        async def ok():
            return None

        await gather_field_results([ok(), ok()])

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def broken():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await gather_field_results([fails(), broken()])


# =============================================================================
# Field Binding Tests
# =============================================================================


class TestFieldBinding:
    @pytest.mark.asyncio
    async def test_blur_failure_returns_false(self, form):
        binding = FieldBinding(FieldContext(form, "email").mount())
        assert await binding.handle_blur() is False
        assert form.errors == {"email": "Email is required"}

    @pytest.mark.asyncio
    async def test_blur_success_returns_true(self, form, model):
        model["email"] = "ada@example.com"
        binding = FieldBinding(FieldContext(form, "email").mount())
        assert await binding.handle_blur() is True

    @pytest.mark.asyncio
    async def test_blur_disabled_by_form(self, model):
        form = FormContext(model, rules={"email": {"required": True}}, validate_on_blur=False)
        binding = FieldBinding(FieldContext(form, "email").mount())
        assert await binding.handle_blur() is True
        assert form.errors == {}

    @pytest.mark.asyncio
    async def test_change_disabled_by_form(self, model):
        form = FormContext(model, rules={"email": {"required": True}}, validate_on_change=False)
        binding = FieldBinding(FieldContext(form, "email").mount())
        assert await binding.handle_change() is True
        assert form.errors == {}

    @pytest.mark.asyncio
    async def test_validate_event_off(self, form):
        binding = FieldBinding(FieldContext(form, "email").mount(), validate_event=False)
        assert await binding.handle_blur() is True
        assert await binding.handle_change() is True
        assert form.errors == {}

    @pytest.mark.asyncio
    async def test_without_field(self):
        binding = FieldBinding(None)
        assert binding.form is None
        assert not binding.is_disabled
        assert await binding.handle_blur() is True
        assert await binding.set_value("x") is True

    @pytest.mark.asyncio
    async def test_set_value_runs_change_validation(self, form, model):
        binding = FieldBinding(FieldContext(form, "age").mount())
        assert await binding.set_value(12) is False
        assert model["age"] == 12
        assert form.errors == {"age": "Adults only"}
        assert await binding.set_value(40) is True
        assert form.errors == {}

    @pytest.mark.asyncio
    async def test_set_same_value_skips_validation(self, form, model):
        binding = FieldBinding(FieldContext(form, "age").mount())
        form.store.set("age", "stale")
        assert await binding.set_value(30) is True
        assert form.errors == {"age": "stale"}

    def test_is_disabled(self, model):
        form = FormContext(model, disabled=True)
        assert FieldBinding(FieldContext(form, "age")).is_disabled
