"""
Pytest configuration and shared fixtures for covidmath tests.
"""

import os
import sys

import numpy as np
import pytest

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from covidmath.components.config import Config, ConfigManager


SAMPLE_ROWS = [
    {'country_name': 'Germany', 'continent': 'Europe', 'total_cases': 38400000, 'total_deaths': 174000,
     'stringency_index': 11.1, 'new_vaccinations': 2000, 'gdp_per_capita': 45229.2, 'life_expectancy': 81.3,
     'population': 83370000, 'icu_patients': 820, 'excess_mortality': 5.1},
    {'country_name': 'France', 'continent': 'Europe', 'total_cases': 38900000, 'total_deaths': 167000,
     'stringency_index': 11.1, 'new_vaccinations': 1500, 'gdp_per_capita': 38605.7, 'life_expectancy': 82.7,
     'population': 67810000, 'icu_patients': 900, 'excess_mortality': 3.9},
    {'country_name': 'Italy', 'continent': 'Europe', 'total_cases': 25900000, 'total_deaths': 190000,
     'stringency_index': 13.9, 'new_vaccinations': 900, 'gdp_per_capita': 35220.1, 'life_expectancy': 83.5,
     'population': 59040000, 'icu_patients': 300, 'excess_mortality': 6.2},
    {'country_name': 'Spain', 'continent': 'Europe', 'total_cases': 13900000, 'total_deaths': 121000,
     'stringency_index': 12.0, 'new_vaccinations': 700, 'gdp_per_capita': 34272.4, 'life_expectancy': 83.6,
     'population': 47420000, 'icu_patients': 250, 'excess_mortality': 4.4},
    {'country_name': 'Nigeria', 'continent': 'Africa', 'total_cases': 267000, 'total_deaths': 3155,
     'stringency_index': 22.2, 'new_vaccinations': 50000, 'gdp_per_capita': 5338.5, 'life_expectancy': 54.7,
     'population': 218500000, 'icu_patients': None, 'excess_mortality': None},
    {'country_name': 'Kenya', 'continent': 'Africa', 'total_cases': 343000, 'total_deaths': 5688,
     'stringency_index': 25.0, 'new_vaccinations': 20000, 'gdp_per_capita': 2993.0, 'life_expectancy': 66.7,
     'population': 54030000, 'icu_patients': None, 'excess_mortality': None},
    {'country_name': 'Egypt', 'continent': 'Africa', 'total_cases': 516000, 'total_deaths': 24800,
     'stringency_index': 30.6, 'new_vaccinations': 35000, 'gdp_per_capita': 10550.2, 'life_expectancy': 71.99,
     'population': 110990000, 'icu_patients': None, 'excess_mortality': 12.0},
    {'country_name': 'Japan', 'continent': 'Asia', 'total_cases': 33800000, 'total_deaths': 74000,
     'stringency_index': 30.1, 'new_vaccinations': 100000, 'gdp_per_capita': 39002.2, 'life_expectancy': 84.6,
     'population': 125120000, 'icu_patients': None, 'excess_mortality': 2.0},
    {'country_name': 'India', 'continent': 'Asia', 'total_cases': 44690000, 'total_deaths': 530700,
     'stringency_index': 44.0, 'new_vaccinations': 300000, 'gdp_per_capita': 6426.7, 'life_expectancy': 69.7,
     'population': 1417000000, 'icu_patients': None, 'excess_mortality': None},
    {'country_name': 'Vietnam', 'continent': 'Asia', 'total_cases': 11520000, 'total_deaths': 43186,
     'stringency_index': 35.0, 'new_vaccinations': 80000, 'gdp_per_capita': 6171.9, 'life_expectancy': 75.4,
     'population': 98190000, 'icu_patients': None, 'excess_mortality': None},
    {'country_name': 'Peru', 'continent': 'South America', 'total_cases': 4480000, 'total_deaths': 219000,
     'stringency_index': 25.0, 'new_vaccinations': 15000, 'gdp_per_capita': 12236.7, 'life_expectancy': 76.7,
     'population': 34050000, 'icu_patients': None, 'excess_mortality': 38.0},
    {'country_name': 'Brazil', 'continent': 'South America', 'total_cases': 36300000, 'total_deaths': 693000,
     'stringency_index': 27.0, 'new_vaccinations': 120000, 'gdp_per_capita': 14103.5, 'life_expectancy': 75.9,
     'population': 215310000, 'icu_patients': None, 'excess_mortality': 15.5},
]


@pytest.fixture
def sample_rows():
    """A small per-country snapshot."""
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def config(monkeypatch, tmp_path):
    """Configuration built from defaults only, caching under tmp_path."""
    for name in ('CLUSTER_K_DEFAULT', 'CLUSTER_K_MIN', 'CLUSTER_K_MAX',
                 'CLUSTER_MAX_ITERS', 'PCA_ITERS', 'CACHE_DIR', 'CACHE_ENABLED', 'LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    return Config({'cache': {'dir': str(tmp_path / 'cache')}})


@pytest.fixture(autouse=True)
def reset_config_manager():
    """Make sure each test starts without a shared configuration."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()
