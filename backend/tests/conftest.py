"""Shared fixtures: a seeded SQLite database and an engine over it."""

import sqlite3

import pytest

from tablerest.engine import CredentialFieldPolicy, CrudEngine
from tablerest.persistence.sqlite import SQLiteAdapter

SCHEMA = """
CREATE TABLE tipoactor (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    titulo TEXT,
    nombre VARCHAR(100)
);
CREATE TABLE codigo (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    valor INTEGER
);
CREATE TABLE sinid (
    clave INTEGER,
    nombre TEXT
);
CREATE TABLE actor (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nombre VARCHAR(100),
    fkidtipoactor INTEGER,
    fkidcodigo INTEGER,
    fkidsinid INTEGER,
    creado DATETIME,
    activo BOOLEAN,
    peso REAL,
    salario DECIMAL(10,2)
);
CREATE TABLE usuario (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email VARCHAR(100) NOT NULL,
    password VARCHAR(255)
);
CREATE TABLE rol (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    nombre VARCHAR(50)
);
CREATE TABLE rol_usuario (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fkemail VARCHAR(100),
    fkidrol INTEGER
);
CREATE TABLE indicador (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    codigo VARCHAR(20),
    nombre VARCHAR(100),
    meta REAL
);
CREATE TABLE variablesporindicador (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fkidindicador INTEGER NOT NULL REFERENCES indicador(id),
    dato REAL NOT NULL,
    fechadato DATETIME
);
CREATE TABLE rareza (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    forma GEOMETRY
);
"""

SEED = """
INSERT INTO tipoactor (titulo, nombre) VALUES ('Dr.', 'Persona');
INSERT INTO tipoactor (titulo, nombre) VALUES ('Ing.', 'Empresa');
INSERT INTO codigo (valor) VALUES (77);
INSERT INTO sinid (clave, nombre) VALUES (1, 'Ninguno');
INSERT INTO actor (nombre, fkidtipoactor, fkidcodigo, fkidsinid, creado, activo, peso, salario)
    VALUES ('Ana', 1, 1, 1, '2024-01-15 10:30:00', 1, 61.5, 1500.50);
INSERT INTO actor (nombre, fkidtipoactor, fkidcodigo, fkidsinid, creado, activo, peso, salario)
    VALUES ('Luis', 2, NULL, NULL, '2024-02-01 08:00:00', 0, 80.0, 2000);
INSERT INTO actor (nombre, fkidtipoactor, fkidcodigo, fkidsinid, creado, activo, peso, salario)
    VALUES ('Sofia', 99, NULL, NULL, '2024-01-15 23:59:59', 1, 55.0, 1800);
INSERT INTO rol (nombre) VALUES ('admin');
INSERT INTO rol (nombre) VALUES ('invitado');
INSERT INTO rol (nombre) VALUES ('Validador');
"""


@pytest.fixture
def db_path(tmp_path):
    """Path of a freshly created and seeded SQLite database."""
    path = tmp_path / "test.db"
    conn = sqlite3.connect(path)
    try:
        conn.executescript(SCHEMA)
        conn.executescript(SEED)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def adapter(db_path):
    return SQLiteAdapter(db_path)


@pytest.fixture
def credentials():
    # Low work factor keeps the suite fast
    return CredentialFieldPolicy(rounds=4)


@pytest.fixture
def engine(adapter, credentials):
    return CrudEngine(adapter, credentials)


@pytest.fixture
def row_count(db_path):
    """Count the rows of a table, bypassing the engine."""

    def count(table: str) -> int:
        conn = sqlite3.connect(db_path)
        try:
            return conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]
        finally:
            conn.close()

    return count
