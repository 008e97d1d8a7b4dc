"""Fixed, read-only indicator reports.

Each report is a hand-written SELECT over the indicator schema, addressed by
name from ``GET /api/{project}/{table}/consulta/{name}``.
"""

REPORTS: dict[str, str] = {
    # Every indicator column plus its type, direction and unit of measure
    "indicadores-con-detalle": """
        SELECT i.*,
               t.nombre AS tipo_nombre,
               s.nombre AS sentido_nombre,
               u.descripcion AS unidad_descripcion
        FROM indicador i
        JOIN tipoindicador t ON i.fkidtipoindicador = t.id
        JOIN sentido s ON i.fkidsentido = s.id
        JOIN unidadmedicion u ON i.fkidunidadmedicion = u.id
    """,
    "indicadores-representacion": """
        SELECT i.id, i.nombre, i.codigo, i.objetivo, i.formula, i.meta,
               rv.nombre AS representacion_visual
        FROM indicador i
        JOIN represenvisualporindicador rpi ON i.id = rpi.fkidindicador
        JOIN represenvisual rv ON rpi.fkidrepresenvisual = rv.id
    """,
    # Responsible actors and their actor type
    "indicadores-actores": """
        SELECT i.id, i.nombre, i.codigo, i.objetivo, i.formula, i.meta,
               a.nombre AS actor_nombre,
               ta.nombre AS tipo_actor
        FROM indicador i
        JOIN responsablesporindicador rpi ON i.id = rpi.fkidindicador
        JOIN actor a ON rpi.fkidresponsable = a.id
        JOIN tipoactor ta ON a.fkidtipoactor = ta.id
    """,
    "indicadores-fuentes": """
        SELECT i.id, i.nombre, i.codigo, i.objetivo, i.formula, i.meta,
               f.nombre AS fuente_nombre
        FROM indicador i
        JOIN fuentesporindicador fpi ON i.id = fpi.fkidindicador
        JOIN fuente f ON fpi.fkidfuente = f.id
    """,
    # Variable values with the date each value was recorded
    "indicadores-variables": """
        SELECT i.id, i.nombre, i.codigo, i.objetivo, i.formula, i.meta,
               v.nombre AS variable_nombre,
               vpi.dato, vpi.fechadato
        FROM indicador i
        JOIN variablesporindicador vpi ON i.id = vpi.fkidindicador
        JOIN variable v ON vpi.fkidvariable = v.id
    """,
    "indicadores-resultados": """
        SELECT i.*,
               ri.id AS id_resultado,
               ri.resultado,
               ri.fechacalculo
        FROM indicador i
        JOIN resultadoindicador ri ON i.id = ri.fkidindicador
    """,
}