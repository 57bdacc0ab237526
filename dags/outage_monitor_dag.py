from airflow import DAG
from airflow.operators.python import PythonOperator
from datetime import datetime, timedelta
import os
import sys

# Add the project root directory to the Python path
# In Airflow container, DAGs are in /opt/airflow/dags/
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

from outage_monitor.core.config import settings
from outage_monitor.core.logging import configure_logging
from outage_monitor.core.timeutils import now_ms, to_local
from outage_monitor.worker import check_devices, is_due, refresh_schedule, update_chart

configure_logging()

def run_check_devices():
    check_devices()

def run_refresh_schedule():
    if is_due(to_local(now_ms()).minute, settings.schedule_refresh_minutes):
        refresh_schedule()

def run_update_chart():
    if is_due(to_local(now_ms()).minute, settings.chart_update_minutes):
        update_chart()

default_args = {
    'owner': 'outage-monitor',
    'depends_on_past': False,
    'start_date': datetime(2024, 1, 1),
    # Each run is retried naturally by the next minute's run
    'retries': 0,
}

with DAG('outage_monitor',
         default_args=default_args,
         schedule='* * * * *',
         catchup=False,
         max_active_runs=1) as dag:

    t1 = PythonOperator(
        task_id='check_devices',
        python_callable=run_check_devices
    )

    t2 = PythonOperator(
        task_id='refresh_schedule',
        python_callable=run_refresh_schedule
    )

    t3 = PythonOperator(
        task_id='update_chart',
        python_callable=run_update_chart
    )

    t1 >> t2 >> t3
