"""
Pipeline de sincronización one-way: planilla Excel -> tabla jobs.

Piezas:
- excel_reader: lee la hoja, resuelve alias de headers y arma filas canónicas.
- remote_client: envía las filas al endpoint POST /api/sync/jobs (x-sync-token).
- sync_service: transportes (directo a la base o remoto) y orquestador.
- sync_agent: corrida periódica/por cambio de archivo, una a la vez por proceso.

Objetivos de diseño:
- Idempotencia: se puede ejecutar N veces sin duplicar jobs (UPSERT por job_number).
- manager_id / supplier_id pertenecen al panel: el sync nunca los escribe.
- Errores por fila se acumulan sin abortar el batch.
"""
