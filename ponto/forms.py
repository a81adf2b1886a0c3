"""WTForms form classes."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import BooleanField, PasswordField, SelectField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Email, Length, Optional, Regexp

from ponto.report_rules import DAY_MARK_LABELS


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"
TIME_MESSAGE = "Use o formato HH:MM."


def _strip(value):
    return value.strip() if value else value


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)], filters=[_strip])
    password = PasswordField("Senha", validators=[DataRequired(), Length(min=8, max=255)])
    remember = BooleanField("Manter conectado")
    submit = SubmitField("Entrar")


class PunchRecordEditForm(FlaskForm):
    entry = StringField("Entrada", validators=[Optional(), Regexp(TIME_PATTERN, message=TIME_MESSAGE)], filters=[_strip])
    lunch_out = StringField(
        "Saída Almoço", validators=[Optional(), Regexp(TIME_PATTERN, message=TIME_MESSAGE)], filters=[_strip]
    )
    lunch_in = StringField(
        "Volta Almoço", validators=[Optional(), Regexp(TIME_PATTERN, message=TIME_MESSAGE)], filters=[_strip]
    )
    final_exit = StringField(
        "Saída Final", validators=[Optional(), Regexp(TIME_PATTERN, message=TIME_MESSAGE)], filters=[_strip]
    )
    day_mark = SelectField(
        "Validação do dia",
        choices=[("", "Sem marcação")] + [(mark.value, label) for mark, label in DAY_MARK_LABELS.items()],
        validators=[Optional()],
        default="",
    )
    note = TextAreaField("Observação", validators=[Optional(), Length(max=500)], filters=[_strip])
    submit = SubmitField("Salvar")
