# algo/connector.py
from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Protocol
import pickle
import numpy as np
import networkx as nx
import osmnx as ox
import requests
import structlog

from .geo import GeoPoint, points_from_lnglat

logger = structlog.get_logger(__name__)

ox.settings.use_cache = True
ox.settings.log_console = False


class Connector(Protocol):
    def route(self, start: GeoPoint, end: GeoPoint) -> Optional[List[GeoPoint]]:
        """Walkable path start→end, or None when no route could be obtained."""
        ...


# =========================
# OSRM (HTTP)
# =========================
class OsrmConnector:
    """OSRM foot-profile routing. Single attempt; failures become None."""

    def __init__(self, base_url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def route(self, start: GeoPoint, end: GeoPoint) -> Optional[List[GeoPoint]]:
        coords = f"{start.lng},{start.lat};{end.lng},{end.lat}"
        url = f"{self.base_url}{coords}"
        try:
            resp = self.session.get(url, params={"overview": "full", "geometries": "geojson"}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("osrm request failed", error=str(e))
            return None
        if not resp.ok:
            logger.warning("osrm bad status", status=resp.status_code)
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.warning("osrm returned invalid json")
            return None
        if not isinstance(data, dict):
            logger.warning("osrm returned unexpected body", body_type=type(data).__name__)
            return None
        routes = data.get("routes") or []
        if data.get("code", "Ok") != "Ok" or not routes or not isinstance(routes[0], dict):
            logger.warning("osrm found no route", code=data.get("code"))
            return None
        geometry = routes[0].get("geometry") or {}
        coords_lnglat = geometry.get("coordinates") if isinstance(geometry, dict) else None
        try:
            return points_from_lnglat(coords_lnglat or []) or None
        except (TypeError, ValueError, IndexError) as e:
            logger.warning("osrm returned malformed coordinates", error=str(e))
            return None


# =========================
# osmnx 보행 그래프 (오프라인 대안)
# =========================
def load_graph_cached(center_lat: float, center_lng: float, dist_m: int, cache_dir: Optional[Path]) -> nx.MultiDiGraph:
    """
    거리 dist_m 반경 도보 네트워크를 캐시/로드.
    cache_dir 는 '디렉토리'여야 함. None이면 osmnx 기본 캐시만 사용.
    """
    if cache_dir is None:
        return ox.graph_from_point((center_lat, center_lng), dist=dist_m, network_type="walk")
    cache_dir.mkdir(parents=True, exist_ok=True)
    fpath = cache_dir / f"graph_{center_lat:.4f}_{center_lng:.4f}_{dist_m}.pkl"
    if fpath.exists():
        with open(fpath, "rb") as f:
            return pickle.load(f)
    G = ox.graph_from_point((center_lat, center_lng), dist=dist_m, network_type="walk")
    with open(fpath, "wb") as f:
        pickle.dump(G, f)
    return G


def nearest_node_id_array(G: nx.MultiDiGraph):
    node_ids = np.array(list(G.nodes))
    node_xy = np.array([[G.nodes[n]["x"], G.nodes[n]["y"]] for n in node_ids], dtype=float)
    return node_xy, node_ids


def nearest_node_id(node_xy: np.ndarray, node_ids: np.ndarray, x: float, y: float):
    d2 = (node_xy[:, 0] - x) ** 2 + (node_xy[:, 1] - y) ** 2
    return node_ids[d2.argmin()]


def shortest_path_coords(G: nx.MultiDiGraph, u, v) -> List[GeoPoint]:
    # u→v 최단경로(길이 기준) 노드열로 구해서 좌표로 펼치기
    nodes = nx.shortest_path(G, u, v, weight="length")
    if len(nodes) == 1:
        n = G.nodes[nodes[0]]
        return [GeoPoint(lat=n["y"], lng=n["x"])]
    coords: List[GeoPoint] = []
    for a, b in zip(nodes[:-1], nodes[1:]):
        data = min(G.get_edge_data(a, b).values(), key=lambda d: d.get("length", 1))
        geom = data.get("geometry")
        if geom is None:
            coords.extend([GeoPoint(G.nodes[a]["y"], G.nodes[a]["x"]), GeoPoint(G.nodes[b]["y"], G.nodes[b]["x"])])
        else:
            coords.extend(points_from_lnglat(geom.coords))
    # 중복 제거
    dedup: List[GeoPoint] = []
    for p in coords:
        if not dedup or p != dedup[-1]:
            dedup.append(p)
    return dedup


class GraphConnector:
    """Shortest walking path on a local osmnx graph, loaded lazily once."""

    def __init__(self, center_lat: float, center_lng: float, dist_m: int = 3000,
                 cache_dir: Optional[Path] = None, graph: Optional[nx.MultiDiGraph] = None):
        self.center = (center_lat, center_lng)
        self.dist_m = dist_m
        self.cache_dir = cache_dir
        self._graph = graph
        self._index = None

    @property
    def graph(self) -> nx.MultiDiGraph:
        if self._graph is None:
            self._graph = load_graph_cached(self.center[0], self.center[1], self.dist_m, self.cache_dir)
        return self._graph

    def _nearest(self, p: GeoPoint):
        if self._index is None:
            self._index = nearest_node_id_array(self.graph)
        node_xy, node_ids = self._index
        return nearest_node_id(node_xy, node_ids, p.lng, p.lat).item()

    def route(self, start: GeoPoint, end: GeoPoint) -> Optional[List[GeoPoint]]:
        try:
            G = self.graph
            if G.number_of_nodes() == 0:
                return None
            u, v = self._nearest(start), self._nearest(end)
            return shortest_path_coords(G, u, v) or None
        except (nx.NetworkXNoPath, nx.NodeNotFound) as e:
            logger.warning("graph route not found", error=str(e))
            return None
        except (requests.RequestException, ValueError) as e:
            # osmnx가 그래프를 못 받아온 경우 (네트워크 오류, 빈 결과)
            logger.warning("graph unavailable", error=str(e))
            return None
